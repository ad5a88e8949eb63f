"""Test configuration and fixtures"""

import random
from dataclasses import replace

import pytest

from spot_synchronizer.core.config import SyncConfig
from spot_synchronizer.core.exceptions import PlaylistUnavailableError, SpotifyError
from spot_synchronizer.spotify.models import CoverImage, Playlist, Track
from spot_synchronizer.sync.covers import CoverProvisioner
from spot_synchronizer.sync.synchronizer import Synchronizer


def make_track(key: str, duration_ms: int = 180000) -> Track:
    """Track whose URI is derived from a short key ("a" -> spotify:track:a)"""
    return Track(uri=f"spotify:track:{key}", name=f"Song {key.upper()}", duration_ms=duration_ms)


class FakeSpotifyClient:
    """
    In-memory stand-in for SpotifyClient.

    Playlists, their tracks and their covers live in dicts. Uploaded
    covers become visible through playlist()/playlist_cover() after
    `cover_ready_after` polls of playlist_cover().
    """

    def __init__(self, user_id: str = "me"):
        self.user_id = user_id
        self.playlists: dict[str, Playlist] = {}
        self.owners: dict[str, str] = {}
        self.tracks: dict[str, list[Track]] = {}
        self.images: dict[str, bytes] = {}
        self.cover_urls: dict[str, str] = {}

        self.unavailable: set[str] = set()
        self.upload_failures = 0
        self.upload_error: SpotifyError | None = None
        self.cover_ready_after = 0

        self.upload_calls = 0
        self.cover_polls: dict[str, int] = {}
        self.replace_calls: list[tuple[str, list[str]]] = []
        self.add_calls: list[tuple[str, list[str]]] = []
        self.unfollowed: list[str] = []
        self._next_id = 0

    # Test helpers

    def add_playlist(
        self,
        playlist_id: str,
        tracks: list[Track] | None = None,
        name: str | None = None,
        description: str = "",
        owner: str | None = None,
        cover_bytes: bytes | None = None
    ) -> Playlist:
        playlist = Playlist(
            id=playlist_id,
            name=name or playlist_id.capitalize(),
            description=description,
            spotify_url=f"https://open.spotify.com/playlist/{playlist_id}",
        )
        self.playlists[playlist_id] = playlist
        self.owners[playlist_id] = owner or self.user_id
        self.tracks[playlist_id] = list(tracks or [])
        if cover_bytes is not None:
            self._store_cover(playlist_id, cover_bytes)
        return self.playlist(playlist_id)

    def _store_cover(self, playlist_id: str, jpeg_bytes: bytes) -> None:
        url = f"https://covers.test/{playlist_id}/{len(self.images)}"
        self.images[url] = jpeg_bytes
        self.cover_urls[playlist_id] = url

    def _check(self, playlist_id: str) -> None:
        if playlist_id in self.unavailable or playlist_id not in self.playlists:
            raise PlaylistUnavailableError(
                f"Playlist unavailable: {playlist_id}",
                details={"playlist_id": playlist_id}
            )

    # SpotifyClient interface

    def current_user(self) -> dict:
        return {"id": self.user_id, "display_name": self.user_id}

    def playlist(self, playlist_id: str) -> Playlist:
        self._check(playlist_id)
        playlist = self.playlists[playlist_id]
        url = self.cover_urls.get(playlist_id)
        return replace(playlist, cover=CoverImage(url=url) if url else None)

    def current_user_owned_playlists(self) -> list[Playlist]:
        return [
            self.playlist(playlist_id)
            for playlist_id, owner in self.owners.items()
            if owner == self.user_id and playlist_id not in self.unavailable
        ]

    def create_playlist(self, name: str, description: str, public: bool = False) -> Playlist:
        self._next_id += 1
        return self.add_playlist(f"new{self._next_id}", name=name, description=description)

    def unfollow_playlist(self, playlist_id: str) -> None:
        self._check(playlist_id)
        self.unfollowed.append(playlist_id)

    def playlist_all_tracks(self, playlist_id: str) -> list[Track]:
        self._check(playlist_id)
        return list(self.tracks[playlist_id])

    def add_tracks(self, playlist_id: str, uris: list[str]) -> None:
        self._check(playlist_id)
        self.add_calls.append((playlist_id, list(uris)))
        self.tracks[playlist_id].extend(Track(uri=uri, name=uri) for uri in uris)

    def replace_tracks(self, playlist_id: str, uris: list[str]) -> None:
        self._check(playlist_id)
        self.replace_calls.append((playlist_id, list(uris)))
        self.tracks[playlist_id] = [Track(uri=uri, name=uri) for uri in uris]

    def upload_cover_image(self, playlist_id: str, jpeg_bytes: bytes) -> None:
        self.upload_calls += 1
        if self.upload_error is not None:
            raise self.upload_error
        if self.upload_failures > 0:
            self.upload_failures -= 1
            raise SpotifyError("Failed to upload cover image: 502 Bad Gateway")
        self._check(playlist_id)
        self._store_cover(playlist_id, jpeg_bytes)

    def playlist_cover(self, playlist_id: str) -> CoverImage | None:
        self._check(playlist_id)
        polls = self.cover_polls.get(playlist_id, 0) + 1
        self.cover_polls[playlist_id] = polls
        url = self.cover_urls.get(playlist_id)
        if url is None:
            return None
        if polls <= self.cover_ready_after:
            # Spotify still serving a resized intermediate
            return CoverImage(url=url, width=60, height=60)
        return CoverImage(url=url)

    def fetch_image_bytes(self, url: str) -> bytes:
        if url not in self.images:
            raise SpotifyError(f"Failed to download cover image: 404 for {url}")
        return self.images[url]


@pytest.fixture
def sync_config():
    """Sync settings with no waiting"""
    return SyncConfig(
        threads=2,
        upload_retry_delay=0,
        upload_max_attempts=3,
        cover_poll_interval=0,
        cover_poll_attempts=3,
    )


@pytest.fixture
def fake_client():
    """Empty in-memory Spotify account"""
    return FakeSpotifyClient()


@pytest.fixture
def provisioner(fake_client, sync_config):
    """Cover provisioner with a seeded placeholder generator"""
    return CoverProvisioner(fake_client, sync_config, rng=random.Random(42))


@pytest.fixture
def synchronizer(fake_client, provisioner, sync_config):
    """Synchronizer wired to the fake client"""
    return Synchronizer(fake_client, provisioner, threads=sync_config.threads)
