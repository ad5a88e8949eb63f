"""
Exception classes for spot-synchronizer.

This module defines all custom exceptions used throughout the application.
Each exception is designed to provide clear, actionable error messages
and to distinguish between different failure modes.

Exception Hierarchy:
    SpotSynchronizerError (base)
        ConfigError - Configuration file issues
        SpotifyError - Spotify API issues
            AuthRequiredError - No valid credential
            PlaylistUnavailableError - Playlist deleted or inaccessible
        ImageError - Cover image cannot be decoded or encoded
        CoverUploadError - Cover upload gave up after its retry bound
        OperationCancelledError - A retry/poll wait was cancelled
        DefinitionError - Synchronization rule cannot be recovered
            DefinitionNotFoundError - No rule stored in the cover
            DefinitionCorruptError - Rule stored but malformed
"""


class SpotSynchronizerError(Exception):
    """
    Base exception for all spot-synchronizer errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch all spot-synchronizer errors with a single
    except clause if desired.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., playlist id).

    Example:
        try:
            synchronizer.synchronize(playlist)
        except SpotSynchronizerError as e:
            logger.error(f"Operation failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'playlist_id': Spotify playlist ID involved in the error
                     - 'url': URL that caused the error
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(SpotSynchronizerError):
    """
    Raised when there's an issue with the configuration file.

    This is a CRITICAL error that should stop program execution.

    Common causes:
        - config.yaml not found
        - config.yaml has invalid YAML syntax
        - Required fields missing (client_id, output directory)
        - Invalid field values (e.g., negative poll attempts)
    """
    pass


class SpotifyError(SpotSynchronizerError):
    """
    Raised when there's an issue with the Spotify API.

    Common causes:
        - Invalid or expired credentials (see AuthRequiredError)
        - Rate limiting
        - Playlist not found or private (see PlaylistUnavailableError)
        - Network connectivity issues

    Attributes:
        is_auth_error: True if this is an authentication error (CRITICAL).
        is_rate_limit: True if this is a rate limit error.
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        is_auth_error: bool = False,
        is_rate_limit: bool = False
    ) -> None:
        """
        Initialize Spotify error with additional flags.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional context.
            is_auth_error: Set to True if this is an authentication failure.
                          Authentication errors are never retried.
            is_rate_limit: Set to True if this is a rate limit error.
        """
        super().__init__(message, details)
        self.is_auth_error = is_auth_error
        self.is_rate_limit = is_rate_limit


class AuthRequiredError(SpotifyError):
    """
    Raised when no valid Spotify credential is available.

    Surfaced to the user, never retried and never isolated: without a
    credential no playlist can be read or written.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message, details, is_auth_error=True)


class PlaylistUnavailableError(SpotifyError):
    """
    Raised when a playlist has been deleted or is not accessible.

    Fatal to the enclosing reconciliation run: a synchronized playlist
    whose constituent playlist disappeared cannot be computed correctly,
    and no partial result is ever written.

    Example:
        raise PlaylistUnavailableError(
            "Playlist not found: 37i9dQZF1DXcBWIGoYBM5M",
            details={'playlist_id': '37i9dQZF1DXcBWIGoYBM5M', 'http_status': 404}
        )
    """
    pass


class ImageError(SpotSynchronizerError):
    """
    Raised when a cover image cannot be decoded or encoded.

    On the read path this means the cover is not a readable JPEG,
    which is reported to callers as DefinitionCorruptError.
    """
    pass


class CoverUploadError(SpotSynchronizerError):
    """
    Raised when uploading a cover image keeps failing.

    The upload is retried with a fixed delay up to a configured number
    of attempts (sync.upload_max_attempts). This error means the bound
    was exhausted; details carry the attempt count and the last error.
    """
    pass


class OperationCancelledError(SpotSynchronizerError):
    """Raised when a cancel event is set while waiting to retry or poll."""
    pass


class DefinitionError(SpotSynchronizerError):
    """
    Base class for failures to recover a synchronization definition.

    Callers must never treat a DefinitionError as an empty definition:
    doing so would silently erase the synchronization semantics of the
    playlist on the next run.
    """
    pass


class DefinitionNotFoundError(DefinitionError):
    """
    Raised when a playlist cover carries no synchronization definition.

    Common causes:
        - Playlist has no cover image at all
        - Cover image was replaced by the user (no JPEG comment)
    """
    pass


class DefinitionCorruptError(DefinitionError):
    """
    Raised when a stored synchronization definition cannot be decoded.

    Common causes:
        - Cover image bytes are not a readable JPEG
        - Comment is not valid UTF-8 / JSON
        - Required keys missing or with wrong types
        - Definition too large to fit into a JPEG comment (encode side)
    """
    pass
