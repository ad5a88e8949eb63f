"""
Cover provisioning: persisting and recovering definitions through covers.

Write path (provision):
    1. Generate the placeholder JPEG
    2. Store the encoded definition in its comment
    3. Upload it as the playlist cover, retrying with a fixed delay
    4. Poll the cover endpoint until Spotify reports the readiness signal

Read path (read_definition):
    Download the current cover bytes, read the comment, decode it.

Eventual Consistency:
    Spotify processes uploaded covers asynchronously. Right after the
    upload, the cover endpoint may still return the previous image or a
    resized intermediate. The readiness signal used by default is the
    reported variant having no explicit height (custom, non-resized
    cover). This is a Spotify implementation detail observed with the
    3x3 placeholder; it is pluggable through the is_ready argument.

Retry Discipline:
    Only two points retry, both with a fixed delay (no backoff):
    - Cover upload: up to sync.upload_max_attempts attempts
    - Readiness poll: up to sync.cover_poll_attempts attempts
    Both waits are interruptible through a threading.Event.
"""

import random
import threading
import time
from typing import Callable

from spot_synchronizer.core.config import SyncConfig
from spot_synchronizer.core.exceptions import (
    CoverUploadError,
    DefinitionCorruptError,
    DefinitionNotFoundError,
    ImageError,
    OperationCancelledError,
    SpotifyError,
)
from spot_synchronizer.core.logger import get_logger
from spot_synchronizer.image.jpeg import (
    PALETTE,
    PLACEHOLDER_HEIGHT,
    PLACEHOLDER_WIDTH,
    generate_placeholder_image,
    read_comment,
    write_comment,
)
from spot_synchronizer.spotify.client import SpotifyClient
from spot_synchronizer.spotify.models import CoverImage, Playlist
from spot_synchronizer.sync.definition import decode_definition, encode_definition
from spot_synchronizer.sync.models import SynchronizationDefinition

logger = get_logger(__name__)


def cover_is_ready(cover: CoverImage | None) -> bool:
    """
    Default readiness signal: a cover exists and reports no height.

    Spotify-specific heuristic, verified only for the placeholder size
    generated by this application.
    """
    return cover is not None and cover.height is None


def _wait(delay: float, cancel: threading.Event | None) -> None:
    """
    Sleep for `delay` seconds, waking up early if `cancel` is set.

    Raises:
        OperationCancelledError: If the cancel event is (or becomes) set.
    """
    if cancel is None:
        time.sleep(delay)
        return
    if cancel.wait(delay):
        raise OperationCancelledError("Operation cancelled while waiting to retry")


class CoverProvisioner:
    """
    Writes definitions into playlist covers and reads them back.

    Attributes:
        _client: Spotify client used for upload, polling and download.
        _config: Delays and bounds for the retry/poll loops.
        _is_ready: Readiness predicate applied to polled covers.
        _rng: Random source for the placeholder colors.
    """

    def __init__(
        self,
        client: SpotifyClient,
        config: SyncConfig,
        is_ready: Callable[[CoverImage | None], bool] = cover_is_ready,
        rng: random.Random | None = None
    ) -> None:
        self._client = client
        self._config = config
        self._is_ready = is_ready
        self._rng = rng

    # =========================================================================
    # Write path
    # =========================================================================

    def build_cover(self, definition: SynchronizationDefinition) -> bytes:
        """
        Build the carrier JPEG for a definition.

        Raises:
            DefinitionCorruptError: If the definition is too large to store.
        """
        payload = encode_definition(definition)
        image = generate_placeholder_image(
            PLACEHOLDER_WIDTH, PLACEHOLDER_HEIGHT, PALETTE, rng=self._rng
        )
        try:
            return write_comment(image, payload)
        except ImageError as e:
            raise DefinitionCorruptError(
                f"Cannot store definition in cover: {e.message}",
                details=e.details
            ) from e

    def provision(
        self,
        playlist_id: str,
        definition: SynchronizationDefinition,
        cancel: threading.Event | None = None
    ) -> str | None:
        """
        Store a definition as the playlist's cover.

        Args:
            playlist_id: Playlist to receive the cover.
            definition: Rule to persist.
            cancel: Optional event; setting it aborts the retry/poll waits.

        Returns:
            The cover URL once Spotify reports the cover as ready, or None
            if readiness was not observed within the polling bound. With
            None, the cover is uploaded but the caller must not rely on it
            yet.

        Raises:
            CoverUploadError: If every upload attempt failed.
            AuthRequiredError: If the credential is missing or invalid.
            OperationCancelledError: If `cancel` was set.
        """
        cover = self.build_cover(definition)
        self.upload(playlist_id, cover, cancel)
        return self.wait_for_cover(playlist_id, cancel)

    def upload(
        self,
        playlist_id: str,
        jpeg_bytes: bytes,
        cancel: threading.Event | None = None
    ) -> None:
        """
        Upload a cover, retrying transient failures with a fixed delay.

        Authentication errors are raised immediately. Any other
        SpotifyError is retried until sync.upload_max_attempts attempts
        have been made.

        Raises:
            CoverUploadError: If the attempt bound is exhausted.
            AuthRequiredError: If the credential is missing or invalid.
            OperationCancelledError: If `cancel` was set.
        """
        max_attempts = self._config.upload_max_attempts
        last_error: SpotifyError | None = None

        for attempt in range(1, max_attempts + 1):
            if cancel is not None and cancel.is_set():
                raise OperationCancelledError(
                    "Cover upload cancelled",
                    details={"playlist_id": playlist_id, "attempt": attempt}
                )
            try:
                self._client.upload_cover_image(playlist_id, jpeg_bytes)
                logger.debug(f"Uploaded cover for {playlist_id} (attempt {attempt})")
                return
            except SpotifyError as e:
                if e.is_auth_error:
                    raise
                last_error = e
                logger.warning(
                    f"Cover upload failed for {playlist_id} "
                    f"(attempt {attempt}/{max_attempts}): {e.message}"
                )

            if attempt < max_attempts:
                _wait(self._config.upload_retry_delay, cancel)

        raise CoverUploadError(
            f"Failed to upload cover after {max_attempts} attempts",
            details={
                "playlist_id": playlist_id,
                "attempts": max_attempts,
                "original_error": str(last_error),
            }
        ) from last_error

    def wait_for_cover(
        self,
        playlist_id: str,
        cancel: threading.Event | None = None
    ) -> str | None:
        """
        Poll the cover endpoint until the readiness signal is observed.

        A failed poll request counts as a not-ready attempt, except for
        authentication errors which are raised.

        Returns:
            The ready cover's URL, or None after sync.cover_poll_attempts
            attempts without readiness.
        """
        attempts = self._config.cover_poll_attempts

        for attempt in range(1, attempts + 1):
            try:
                cover = self._client.playlist_cover(playlist_id)
            except SpotifyError as e:
                if e.is_auth_error:
                    raise
                logger.debug(f"Cover poll {attempt}/{attempts} for {playlist_id} failed: {e}")
                cover = None

            if self._is_ready(cover):
                return cover.url

            if attempt < attempts:
                _wait(self._config.cover_poll_interval, cancel)

        logger.warning(
            f"Cover of {playlist_id} not ready after {attempts} polls; "
            "it will not be discoverable until Spotify finishes processing"
        )
        return None

    # =========================================================================
    # Read path
    # =========================================================================

    def read_definition(self, playlist: Playlist) -> SynchronizationDefinition:
        """
        Recover the definition stored in a playlist's current cover.

        Raises:
            DefinitionNotFoundError: If there is no cover or no comment.
            DefinitionCorruptError: If the cover is unreadable or the
                                    comment is malformed.
            SpotifyError: If the cover cannot be downloaded.
        """
        if playlist.cover_url is None:
            raise DefinitionNotFoundError(
                f"Playlist '{playlist.name}' has no cover",
                details={"playlist_id": playlist.id}
            )

        image_bytes = self._client.fetch_image_bytes(playlist.cover_url)

        try:
            comment = read_comment(image_bytes)
        except ImageError as e:
            raise DefinitionCorruptError(
                f"Cover of '{playlist.name}' is not a readable image",
                details={"playlist_id": playlist.id, **e.details}
            ) from e

        return decode_definition(comment)
