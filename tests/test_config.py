"""Test configuration loading"""

from pathlib import Path
from unittest.mock import patch

import pytest

from spot_synchronizer.core.config import SyncConfig, load_config
from spot_synchronizer.core.exceptions import ConfigError

MINIMAL_CONFIG = """
spotify:
  client_id: "abc123"
output:
  directory: "~/spot-sync-test"
"""


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """No .env file and no Spotify variables from the developer's shell"""
    for name in ("SPOTIFY_CLIENT_ID", "SPOTIFY_CLIENT_SECRET", "SPOTIFY_REDIRECT_URI"):
        monkeypatch.delenv(name, raising=False)
    with patch("spot_synchronizer.core.config.load_dotenv"):
        yield


@pytest.fixture
def write_config(tmp_path):
    def _write(content: str) -> Path:
        path = tmp_path / "config.yaml"
        path.write_text(content, encoding="utf-8")
        return path
    return _write


class TestLoadConfig:
    """Test the happy path and defaults"""

    def test_minimal_config_uses_defaults(self, write_config):
        config = load_config(write_config(MINIMAL_CONFIG))

        assert config.spotify.client_id == "abc123"
        assert config.spotify.client_secret is None
        assert config.spotify.redirect_uri == "http://127.0.0.1:8888/callback"
        assert config.spotify.cache_path.is_absolute()
        assert config.output.directory == Path("~/spot-sync-test").expanduser().resolve()
        assert config.sync == SyncConfig()

    def test_full_config(self, write_config):
        config = load_config(write_config(MINIMAL_CONFIG + """
sync:
  threads: 8
  upload_retry_delay: 1
  upload_max_attempts: 5
  cover_poll_interval: 0.25
  cover_poll_attempts: 10
"""))

        assert config.sync == SyncConfig(
            threads=8,
            upload_retry_delay=1.0,
            upload_max_attempts=5,
            cover_poll_interval=0.25,
            cover_poll_attempts=10,
        )
        assert isinstance(config.sync.upload_retry_delay, float)

    def test_empty_secret_means_pkce(self, write_config):
        config = load_config(write_config(MINIMAL_CONFIG.replace(
            'client_id: "abc123"', 'client_id: "abc123"\n  client_secret: ""'
        )))

        assert config.spotify.client_secret is None

    def test_environment_overrides_file(self, write_config, monkeypatch):
        monkeypatch.setenv("SPOTIFY_CLIENT_ID", "from-env")
        monkeypatch.setenv("SPOTIFY_CLIENT_SECRET", "secret-env")

        config = load_config(write_config(MINIMAL_CONFIG))

        assert config.spotify.client_id == "from-env"
        assert config.spotify.client_secret == "secret-env"

    def test_defaults_to_current_directory(self, tmp_path, monkeypatch):
        (tmp_path / "config.yaml").write_text(MINIMAL_CONFIG, encoding="utf-8")
        monkeypatch.chdir(tmp_path)

        assert load_config().spotify.client_id == "abc123"


class TestInvalidConfig:
    """Test that every problem is reported as ConfigError"""

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path / "nope.yaml")

        assert "nope.yaml" in exc_info.value.details["file_path"]

    def test_invalid_yaml(self, write_config):
        with pytest.raises(ConfigError):
            load_config(write_config("spotify: [unclosed"))

    def test_not_a_dictionary(self, write_config):
        with pytest.raises(ConfigError):
            load_config(write_config("- just\n- a list\n"))

    @pytest.mark.parametrize("section", ["spotify", "output"])
    def test_missing_section(self, write_config, section):
        content = MINIMAL_CONFIG.replace(f"{section}:", f"unused_{section}:")

        with pytest.raises(ConfigError) as exc_info:
            load_config(write_config(content))

        assert exc_info.value.details["missing_section"] == section

    def test_missing_client_id(self, write_config):
        with pytest.raises(ConfigError):
            load_config(write_config(MINIMAL_CONFIG.replace('"abc123"', '""')))

    @pytest.mark.parametrize("line", [
        "threads: 0",
        "threads: yes",
        "threads: 2.5",
        "upload_max_attempts: -1",
        "upload_retry_delay: -0.5",
        "cover_poll_interval: soon",
    ])
    def test_invalid_sync_values(self, write_config, line):
        with pytest.raises(ConfigError):
            load_config(write_config(MINIMAL_CONFIG + f"sync:\n  {line}\n"))

    def test_sync_must_be_dictionary(self, write_config):
        with pytest.raises(ConfigError):
            load_config(write_config(MINIMAL_CONFIG + "sync: fast\n"))
