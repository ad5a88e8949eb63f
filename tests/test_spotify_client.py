"""Test the spotipy wrapper"""

import base64
from unittest.mock import Mock, call, patch

import pytest
import requests
import spotipy
from spotipy.oauth2 import SpotifyOAuth, SpotifyPKCE

from spot_synchronizer.core.config import SpotifyConfig
from spot_synchronizer.core.exceptions import (
    AuthRequiredError,
    PlaylistUnavailableError,
    SpotifyError,
)
from spot_synchronizer.spotify.client import (
    SpotifyClient,
    clear_token_cache,
    create_auth_manager,
)


def track_item(key, is_local=False):
    return {
        "is_local": is_local,
        "track": {"uri": f"spotify:track:{key}", "name": key, "duration_ms": 1000, "is_local": is_local},
    }


@pytest.fixture
def spotify():
    """Mocked spotipy.Spotify instance"""
    return Mock(spec=spotipy.Spotify)


@pytest.fixture
def client(spotify):
    return SpotifyClient(spotify, session=Mock(spec=requests.Session))


class TestErrorMapping:
    """Test translation of spotipy and network errors"""

    def test_unauthorized(self, client, spotify):
        spotify.current_user.side_effect = spotipy.SpotifyException(401, -1, "The access token expired")

        with pytest.raises(AuthRequiredError) as exc_info:
            client.current_user()

        assert exc_info.value.is_auth_error

    @pytest.mark.parametrize("status", [403, 404])
    def test_playlist_unavailable(self, client, spotify, status):
        spotify.playlist.side_effect = spotipy.SpotifyException(status, -1, "Not found")

        with pytest.raises(PlaylistUnavailableError) as exc_info:
            client.playlist("gone")

        assert exc_info.value.details["playlist_id"] == "gone"

    def test_rate_limited(self, client, spotify):
        spotify.playlist.side_effect = spotipy.SpotifyException(429, -1, "Too many requests")

        with pytest.raises(SpotifyError) as exc_info:
            client.playlist("p")

        assert exc_info.value.is_rate_limit
        assert not isinstance(exc_info.value, PlaylistUnavailableError)

    def test_server_error(self, client, spotify):
        spotify.playlist_add_items.side_effect = spotipy.SpotifyException(500, -1, "Server error")

        with pytest.raises(SpotifyError) as exc_info:
            client.add_tracks("p", ["spotify:track:a"])

        assert exc_info.value.details["http_status"] == 500
        assert not exc_info.value.is_auth_error

    def test_network_error(self, client, spotify):
        spotify.current_user_playlists.side_effect = requests.exceptions.ConnectionError("boom")

        with pytest.raises(SpotifyError):
            client.current_user_all_playlists()


class TestPlaylists:
    """Test playlist operations"""

    def test_playlist_model(self, client, spotify):
        spotify.playlist.return_value = {
            "id": "p",
            "name": "Mix",
            "description": "@synchronized",
            "images": [{"url": "https://i.scdn.co/large", "height": 640, "width": 640},
                       {"url": "https://i.scdn.co/small", "height": None, "width": None}],
            "external_urls": {"spotify": "https://open.spotify.com/playlist/p"},
        }

        playlist = client.playlist("p")

        assert playlist.name == "Mix"
        assert playlist.cover_url == "https://i.scdn.co/small"

    def test_all_playlists_paginates(self, client, spotify):
        spotify.current_user_playlists.side_effect = [
            {"items": [{"id": "1"}, {"id": "2"}], "next": "page2"},
            {"items": [{"id": "3"}], "next": None},
        ]

        items = client.current_user_all_playlists()

        assert [item["id"] for item in items] == ["1", "2", "3"]
        assert spotify.current_user_playlists.call_args_list == [
            call(limit=50, offset=0),
            call(limit=50, offset=50),
        ]

    def test_owned_playlists_only(self, client, spotify):
        spotify.current_user.return_value = {"id": "me", "display_name": "Me"}
        spotify.current_user_playlists.return_value = {
            "items": [
                {"id": "mine", "name": "Mine", "owner": {"id": "me"}},
                {"id": "followed", "name": "Followed", "owner": {"id": "spotify"}},
            ],
            "next": None,
        }

        assert [p.id for p in client.current_user_owned_playlists()] == ["mine"]

    def test_create_playlist(self, client, spotify):
        spotify.current_user.return_value = {"id": "me"}
        spotify.user_playlist_create.return_value = {"id": "new", "name": "Mix", "description": "@synchronized"}

        playlist = client.create_playlist("Mix", "@synchronized")

        spotify.user_playlist_create.assert_called_once_with(
            "me", "Mix", public=False, description="@synchronized"
        )
        assert playlist.id == "new"


class TestTracks:
    """Test track operations"""

    def test_all_tracks_paginates_and_skips_unusable_items(self, client, spotify):
        spotify.playlist_items.side_effect = [
            {"items": [track_item("a"), {"is_local": False, "track": None}], "next": "page2"},
            {"items": [track_item("local", is_local=True), track_item("b")], "next": None},
        ]

        tracks = client.playlist_all_tracks("p")

        assert [t.uri for t in tracks] == ["spotify:track:a", "spotify:track:b"]
        offsets = [c.kwargs["offset"] for c in spotify.playlist_items.call_args_list]
        assert offsets == [0, 100]

    def test_add_tracks_in_chunks_of_100(self, client, spotify):
        uris = [f"spotify:track:{i}" for i in range(250)]

        client.add_tracks("p", uris)

        chunks = [c.args[1] for c in spotify.playlist_add_items.call_args_list]
        assert [len(chunk) for chunk in chunks] == [100, 100, 50]
        assert sum(chunks, []) == uris

    def test_add_no_tracks(self, client, spotify):
        client.add_tracks("p", [])

        spotify.playlist_add_items.assert_not_called()

    def test_replace_clears_then_adds(self, client, spotify):
        manager = Mock()
        manager.attach_mock(spotify.playlist_replace_items, "replace")
        manager.attach_mock(spotify.playlist_add_items, "add")

        client.replace_tracks("p", ["spotify:track:a"])

        assert manager.mock_calls == [
            call.replace("p", []),
            call.add("p", ["spotify:track:a"]),
        ]

    def test_replace_with_nothing_only_clears(self, client, spotify):
        client.replace_tracks("p", [])

        spotify.playlist_replace_items.assert_called_once_with("p", [])
        spotify.playlist_add_items.assert_not_called()


class TestCovers:
    """Test cover operations"""

    def test_upload_sends_base64(self, client, spotify):
        client.upload_cover_image("p", b"\xff\xd8jpeg")

        spotify.playlist_upload_cover_image.assert_called_once_with(
            "p", base64.b64encode(b"\xff\xd8jpeg").decode("ascii")
        )

    def test_cover_is_last_image(self, client, spotify):
        spotify.playlist_cover_image.return_value = [
            {"url": "big", "height": 640, "width": 640},
            {"url": "custom", "height": None, "width": None},
        ]

        cover = client.playlist_cover("p")

        assert cover.url == "custom"
        assert cover.height is None

    def test_no_cover(self, client, spotify):
        spotify.playlist_cover_image.return_value = []

        assert client.playlist_cover("p") is None

    def test_fetch_image_bytes(self, client):
        response = Mock()
        response.content = b"jpeg"
        client._session.get.return_value = response

        assert client.fetch_image_bytes("https://i.scdn.co/x") == b"jpeg"

    def test_fetch_image_bytes_http_error(self, client):
        response = Mock()
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("404")
        client._session.get.return_value = response

        with pytest.raises(SpotifyError):
            client.fetch_image_bytes("https://i.scdn.co/x")


class TestAuthManager:
    """Test token provider construction"""

    def make_config(self, tmp_path, secret):
        return SpotifyConfig(
            client_id="id",
            client_secret=secret,
            redirect_uri="http://127.0.0.1:8888/callback",
            cache_path=tmp_path / "cache" / "token.json",
        )

    def test_pkce_without_secret(self, tmp_path):
        manager = create_auth_manager(self.make_config(tmp_path, None))

        assert isinstance(manager, SpotifyPKCE)
        assert (tmp_path / "cache").is_dir()

    def test_oauth_with_secret(self, tmp_path):
        manager = create_auth_manager(self.make_config(tmp_path, "secret"))

        assert isinstance(manager, SpotifyOAuth)

    def test_clear_token_cache(self, tmp_path):
        config = self.make_config(tmp_path, None)
        config.cache_path.parent.mkdir(parents=True)
        config.cache_path.write_text("{}")

        assert clear_token_cache(config) is True
        assert not config.cache_path.exists()
        assert clear_token_cache(config) is False

    def test_from_config_uses_auth_manager(self, tmp_path):
        with patch("spot_synchronizer.spotify.client.spotipy.Spotify") as spotify_cls:
            SpotifyClient.from_config(self.make_config(tmp_path, None))

        auth_manager = spotify_cls.call_args.kwargs["auth_manager"]
        assert isinstance(auth_manager, SpotifyPKCE)

    def test_from_config_disables_request_retries(self, tmp_path):
        client = SpotifyClient.from_config(self.make_config(tmp_path, None))

        session = client._spotify._session
        retries = session.get_adapter("https://api.spotify.com/v1/me").max_retries

        assert session is client._session
        assert retries.total == 0
        assert not retries.status_forcelist
