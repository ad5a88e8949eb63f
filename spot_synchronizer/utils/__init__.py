"""
Utility functions for spot-synchronizer.

This module provides small helpers used by the command line:
    - Playlist ID extraction from URLs, URIs or bare IDs
    - Track duration formatting

Usage:
    from spot_synchronizer.utils import extract_playlist_id, format_duration
"""


def extract_spotify_id(url_or_id: str) -> str:
    """
    Extract a Spotify ID from a URL or URI, or return it as-is.

    Handles various Spotify formats:
        - https://open.spotify.com/playlist/ID
        - https://open.spotify.com/playlist/ID?si=xxx
        - spotify:playlist:ID
        - Just the ID

    Examples:
        extract_spotify_id("https://open.spotify.com/playlist/abc123?si=xyz")
        # Returns: "abc123"

        extract_spotify_id("spotify:playlist:abc123")
        # Returns: "abc123"
    """
    url_or_id = url_or_id.strip()

    if url_or_id.startswith("spotify:"):
        return url_or_id.split(":")[-1]

    if "spotify.com" in url_or_id:
        url_or_id = url_or_id.split("?")[0]
        return url_or_id.rstrip("/").split("/")[-1]

    return url_or_id


def extract_playlist_id(url_or_id: str) -> str:
    """
    Extract a playlist ID from a playlist URL, URI or bare ID.

    Raises:
        ValueError: If given a Spotify URL or URI of something other
                    than a playlist (e.g. a track link).

    Examples:
        extract_playlist_id("https://open.spotify.com/playlist/37i9dQZF1DXcBWIGoYBM5M")
        # Returns: "37i9dQZF1DXcBWIGoYBM5M"
    """
    value = url_or_id.strip()
    is_link = value.startswith("spotify:") or "spotify.com" in value
    if is_link and "playlist" not in value:
        raise ValueError(f"Not a playlist URL: {url_or_id}")

    playlist_id = extract_spotify_id(value)
    if not playlist_id:
        raise ValueError(f"Empty playlist ID: {url_or_id!r}")
    return playlist_id


def format_duration(duration_ms: int) -> str:
    """
    Format a duration in milliseconds as zero-padded mm:ss.

    Seconds are truncated, not rounded. Minutes are not wrapped into hours.

    Examples:
        format_duration(225000)   # "03:45"
        format_duration(3750000)  # "62:30"
        format_duration(45999)    # "00:45"
    """
    total_seconds = max(0, duration_ms) // 1000
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"
