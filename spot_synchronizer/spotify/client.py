"""
Spotify API client for spot-synchronizer.

This module wraps the spotipy library with the handful of Web API
operations the synchronization engine needs, converting responses into
the models from spotify.models and every failure into the exception
hierarchy from core.exceptions.

Authentication:
    The client does not own any global credential state. It is built from
    a spotipy auth manager (the token provider), which is created from
    configuration by create_auth_manager():
    1. Authorization Code flow (SpotifyOAuth) when a client_secret is set.
    2. PKCE flow (SpotifyPKCE) when no client_secret is configured.
    Both cache the token in spotify.cache_path and refresh it transparently.

Scopes:
    playlist-read-private      list the user's playlists
    playlist-modify-private    create playlists and write their tracks
    playlist-modify-public     same, for public playlists
    ugc-image-upload           upload the cover image carrying the definition

Usage:
    from spot_synchronizer.spotify.client import SpotifyClient

    client = SpotifyClient.from_config(config.spotify)
    for playlist in client.current_user_owned_playlists():
        print(playlist.name)

Error Mapping:
    401                      -> AuthRequiredError
    403/404 on a playlist    -> PlaylistUnavailableError
    429                      -> SpotifyError(is_rate_limit=True)
    other HTTP / network     -> SpotifyError
"""

import base64
from pathlib import Path
from typing import Any, Callable

import requests
import spotipy
from spotipy.cache_handler import CacheFileHandler
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError, SpotifyPKCE

from spot_synchronizer.core.config import SpotifyConfig
from spot_synchronizer.core.exceptions import (
    AuthRequiredError,
    PlaylistUnavailableError,
    SpotifyError,
)
from spot_synchronizer.core.logger import get_logger
from spot_synchronizer.spotify.models import CoverImage, Playlist, Track

logger = get_logger(__name__)


SCOPES = (
    "playlist-read-private",
    "playlist-modify-private",
    "playlist-modify-public",
    "ugc-image-upload",
)

# Spotify Web API limits
PLAYLIST_ITEMS_PAGE_SIZE = 100
USER_PLAYLISTS_PAGE_SIZE = 50
MAX_URIS_PER_REQUEST = 100

REQUEST_TIMEOUT = 10

PLAYLIST_FIELDS = "id,name,description,images,external_urls,owner(id)"
PLAYLIST_ITEMS_FIELDS = "items(is_local,track(uri,name,duration_ms,is_local)),next"


def create_auth_manager(config: SpotifyConfig) -> spotipy.oauth2.SpotifyAuthBase:
    """
    Build the spotipy auth manager used as token provider.

    Args:
        config: Spotify section of the application configuration.

    Returns:
        SpotifyOAuth when a client secret is configured, SpotifyPKCE otherwise.
        The first API call opens the browser if no cached token exists.
    """
    config.cache_path.parent.mkdir(parents=True, exist_ok=True)
    cache_handler = CacheFileHandler(cache_path=str(config.cache_path))
    scope = " ".join(SCOPES)

    if config.client_secret:
        return SpotifyOAuth(
            client_id=config.client_id,
            client_secret=config.client_secret,
            redirect_uri=config.redirect_uri,
            scope=scope,
            cache_handler=cache_handler,
            open_browser=True
        )

    return SpotifyPKCE(
        client_id=config.client_id,
        redirect_uri=config.redirect_uri,
        scope=scope,
        cache_handler=cache_handler,
        open_browser=True
    )


def clear_token_cache(config: SpotifyConfig) -> bool:
    """
    Delete the cached Spotify token.

    Returns:
        True if a cache file was removed, False if there was none.
    """
    cache_path: Path = config.cache_path
    if not cache_path.exists():
        return False
    cache_path.unlink()
    logger.info(f"Removed cached Spotify token: {cache_path}")
    return True


def _chunks(items: list[str], size: int) -> list[list[str]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class SpotifyClient:
    """
    Spotify Web API client used by the synchronization engine.

    Wraps spotipy.Spotify. Every public method either returns models from
    spotify.models (or plain data) or raises a SpotifyError subclass; raw
    spotipy/requests exceptions never escape.

    Attributes:
        _spotify: The underlying spotipy.Spotify instance.
        _session: requests session used to download cover image bytes.
        _user_id: Cached ID of the authenticated user.

    Thread Safety:
        Methods only read instance state (apart from the cached user id,
        which is idempotent), so they can be called from worker threads.
    """

    def __init__(
        self,
        spotify_instance: spotipy.Spotify,
        session: requests.Session | None = None
    ) -> None:
        self._spotify = spotify_instance
        self._session = session or requests.Session()
        self._user_id: str | None = None

    @classmethod
    def from_config(cls, config: SpotifyConfig) -> "SpotifyClient":
        """
        Create a client authenticated with the configured token provider.

        Args:
            config: Spotify section of the application configuration.

        Returns:
            A ready SpotifyClient. No request is made yet.
        """
        auth_manager = create_auth_manager(config)
        # Plain session: no urllib3 retry or backoff on API calls
        session = requests.Session()
        spotify_instance = spotipy.Spotify(
            auth_manager=auth_manager,
            requests_session=session,
            requests_timeout=REQUEST_TIMEOUT
        )
        return cls(spotify_instance, session=session)

    # =========================================================================
    # Request wrapper
    # =========================================================================

    def _call(
        self,
        action: str,
        func: Callable[..., Any],
        *args: Any,
        playlist_id: str | None = None,
        **kwargs: Any
    ) -> Any:
        """
        Call a spotipy method and translate its failures.

        Args:
            action: Short description used in error messages ("fetch playlist").
            func: spotipy method to call.
            *args: Positional arguments for the method.
            playlist_id: Playlist the call is about, if any. When set,
                         403/404 responses become PlaylistUnavailableError.
            **kwargs: Keyword arguments for the method.

        Returns:
            Whatever the spotipy method returns.

        Raises:
            AuthRequiredError: On 401 or when the OAuth flow fails.
            PlaylistUnavailableError: On 403/404 for a playlist call.
            SpotifyError: On any other HTTP or network failure.
        """
        details: dict[str, Any] = {"action": action}
        if playlist_id is not None:
            details["playlist_id"] = playlist_id

        try:
            return func(*args, **kwargs)
        except spotipy.SpotifyException as e:
            details["http_status"] = e.http_status
            details["original_error"] = str(e)
            if e.http_status == 401:
                raise AuthRequiredError(
                    f"Spotify authorization required to {action}",
                    details=details
                ) from e
            if playlist_id is not None and e.http_status in (403, 404):
                raise PlaylistUnavailableError(
                    f"Playlist unavailable: {playlist_id}",
                    details=details
                ) from e
            if e.http_status == 429:
                raise SpotifyError(
                    f"Rate limited while trying to {action}",
                    details=details,
                    is_rate_limit=True
                ) from e
            raise SpotifyError(f"Failed to {action}: {e}", details=details) from e
        except SpotifyOauthError as e:
            details["original_error"] = str(e)
            raise AuthRequiredError(
                f"Spotify authorization failed: {e}",
                details=details
            ) from e
        except requests.exceptions.RequestException as e:
            details["original_error"] = str(e)
            raise SpotifyError(
                f"Network error while trying to {action}: {e}",
                details=details
            ) from e

    # =========================================================================
    # User Operations
    # =========================================================================

    def current_user(self) -> dict[str, Any]:
        """
        Get the authenticated user's profile.

        Returns:
            Dictionary with at least 'id' and 'display_name'.
        """
        user = self._call("fetch current user", self._spotify.current_user)
        if not user or "id" not in user:
            raise AuthRequiredError("Spotify returned no current user")
        self._user_id = user["id"]
        return user

    @property
    def user_id(self) -> str:
        """ID of the authenticated user (fetched once, then cached)."""
        if self._user_id is None:
            self.current_user()
        return self._user_id

    # =========================================================================
    # Playlist Operations
    # =========================================================================

    def playlist(self, playlist_id: str) -> Playlist:
        """
        Get playlist metadata (no tracks).

        Raises:
            PlaylistUnavailableError: If the playlist was deleted or is private.
        """
        result = self._call(
            "fetch playlist",
            self._spotify.playlist,
            playlist_id,
            fields=PLAYLIST_FIELDS,
            playlist_id=playlist_id
        )
        if result is None:
            raise PlaylistUnavailableError(
                f"Playlist not found: {playlist_id}",
                details={"playlist_id": playlist_id}
            )
        return Playlist.from_spotify_api(result)

    def current_user_all_playlists(self) -> list[dict[str, Any]]:
        """
        Get ALL playlists in the user's library, handling pagination.

        Returns:
            Raw simplified playlist objects, owned and followed, in
            library order.
        """
        all_items: list[dict[str, Any]] = []
        offset = 0

        while True:
            response = self._call(
                "list playlists",
                self._spotify.current_user_playlists,
                limit=USER_PLAYLISTS_PAGE_SIZE,
                offset=offset
            )
            all_items.extend(item for item in response.get("items", []) if item)

            if response.get("next") is None:
                break
            offset += USER_PLAYLISTS_PAGE_SIZE

        return all_items

    def current_user_owned_playlists(self) -> list[Playlist]:
        """
        Get the playlists owned by the authenticated user.

        Followed playlists of other users are left out: their description
        and tracks cannot be written by this user anyway.
        """
        user_id = self.user_id
        return [
            Playlist.from_spotify_api(item)
            for item in self.current_user_all_playlists()
            if (item.get("owner") or {}).get("id") == user_id
        ]

    def create_playlist(
        self,
        name: str,
        description: str,
        public: bool = False
    ) -> Playlist:
        """
        Create a new, empty playlist in the user's account.

        Args:
            name: Playlist name.
            description: Playlist description.
            public: Whether the playlist is public. Default False.

        Returns:
            The created Playlist (no cover yet).
        """
        result = self._call(
            "create playlist",
            self._spotify.user_playlist_create,
            self.user_id,
            name,
            public=public,
            description=description
        )
        playlist = Playlist.from_spotify_api(result)
        logger.debug(f"Created playlist '{playlist.name}' ({playlist.id})")
        return playlist

    def unfollow_playlist(self, playlist_id: str) -> None:
        """Remove a playlist from the user's library (Spotify's 'delete')."""
        self._call(
            "unfollow playlist",
            self._spotify.current_user_unfollow_playlist,
            playlist_id,
            playlist_id=playlist_id
        )

    # =========================================================================
    # Track Operations
    # =========================================================================

    def playlist_all_tracks(self, playlist_id: str) -> list[Track]:
        """
        Get ALL tracks of a playlist in playlist order, handling pagination.

        Items that cannot be synchronized (removed tracks, local files)
        are skipped; see Track.is_valid_item().

        Raises:
            PlaylistUnavailableError: If the playlist was deleted or is private.
        """
        tracks: list[Track] = []
        offset = 0
        skipped = 0

        while True:
            response = self._call(
                "fetch playlist tracks",
                self._spotify.playlist_items,
                playlist_id,
                fields=PLAYLIST_ITEMS_FIELDS,
                limit=PLAYLIST_ITEMS_PAGE_SIZE,
                offset=offset,
                additional_types=("track",),
                playlist_id=playlist_id
            )
            if response is None:
                raise PlaylistUnavailableError(
                    f"Playlist not found: {playlist_id}",
                    details={"playlist_id": playlist_id}
                )

            for item in response.get("items", []):
                if Track.is_valid_item(item):
                    tracks.append(Track.from_spotify_api(item["track"]))
                else:
                    skipped += 1

            if response.get("next") is None:
                break
            offset += PLAYLIST_ITEMS_PAGE_SIZE

        if skipped:
            logger.debug(f"Skipped {skipped} unavailable/local items in {playlist_id}")

        return tracks

    def add_tracks(self, playlist_id: str, uris: list[str]) -> None:
        """
        Append tracks to a playlist, in order.

        Spotify accepts at most 100 URIs per request, so the list is sent
        in consecutive chunks.
        """
        for chunk in _chunks(list(uris), MAX_URIS_PER_REQUEST):
            self._call(
                "add tracks",
                self._spotify.playlist_add_items,
                playlist_id,
                chunk,
                playlist_id=playlist_id
            )

    def replace_tracks(self, playlist_id: str, uris: list[str]) -> None:
        """
        Replace the whole track list of a playlist.

        Clears the playlist, then adds the URIs in chunks of 100. The
        result matches `uris` exactly, with no leftover tracks.
        """
        self._call(
            "clear playlist",
            self._spotify.playlist_replace_items,
            playlist_id,
            [],
            playlist_id=playlist_id
        )
        self.add_tracks(playlist_id, uris)

    # =========================================================================
    # Cover Operations
    # =========================================================================

    def upload_cover_image(self, playlist_id: str, jpeg_bytes: bytes) -> None:
        """
        Upload a JPEG as the playlist's custom cover.

        Spotify processes the image asynchronously: right after this call
        returns, playlist_cover() may still report the old or a partially
        processed cover.
        """
        image_b64 = base64.b64encode(jpeg_bytes).decode("ascii")
        self._call(
            "upload cover image",
            self._spotify.playlist_upload_cover_image,
            playlist_id,
            image_b64,
            playlist_id=playlist_id
        )

    def playlist_cover(self, playlist_id: str) -> CoverImage | None:
        """
        Get the current cover image variant of a playlist.

        Returns:
            The last variant from Spotify's image list, or None if the
            playlist has no cover.
        """
        images = self._call(
            "fetch cover image",
            self._spotify.playlist_cover_image,
            playlist_id,
            playlist_id=playlist_id
        )
        return CoverImage.from_image_list(images)

    def fetch_image_bytes(self, url: str) -> bytes:
        """
        Download raw image bytes from a cover URL.

        Raises:
            SpotifyError: If the download fails (HTTP error or network).
        """
        try:
            response = self._session.get(url, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise SpotifyError(
                f"Failed to download cover image: {e}",
                details={"url": url, "original_error": str(e)}
            ) from e
        return response.content
