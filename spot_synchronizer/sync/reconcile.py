"""
Track reconciliation: computing a synchronized playlist's track list.

Algorithm:
    1. Fetch every track of the included playlists, concatenated in
       playlist order (each playlist in its own order, fully paginated)
    2. Deduplicate by URI, keeping the first occurrence
    3. Remove every track whose URI appears in an excluded playlist
    4. If there are required playlists, keep only tracks whose URI
       appears in one of them; with no required playlists, skip this step.
       Required playlists that are all empty therefore give an empty result
    5. Return the result without any sorting

Failure Policy:
    A failing fetch for any playlist aborts the whole reconciliation.
    There is no best-effort mode: a partially computed list must never
    be written as if it were the correct result.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Iterable

from spot_synchronizer.core.logger import get_logger
from spot_synchronizer.spotify.client import SpotifyClient
from spot_synchronizer.spotify.models import Playlist, Track

logger = get_logger(__name__)


def unique_by_uri(tracks: Iterable[Track]) -> list[Track]:
    """Drop repeated URIs, keeping the first occurrence and the order."""
    seen: set[str] = set()
    result: list[Track] = []
    for track in tracks:
        if track.uri not in seen:
            seen.add(track.uri)
            result.append(track)
    return result


def filter_tracks(
    included_tracks: list[Track],
    excluded_tracks: list[Track],
    required_tracks: list[Track] | None
) -> list[Track]:
    """
    Apply dedupe, exclusion and the optional requirement to track lists.

    Args:
        included_tracks: Tracks of all included playlists, concatenated.
        excluded_tracks: Tracks of all excluded playlists.
        required_tracks: Tracks of all required playlists, or None when
                         there is no requirement. An empty list is a real
                         requirement that nothing satisfies.

    Returns:
        The filtered tracks in first-appearance order.

    Example:
        filter_tracks([a, b, c, c, d], [b], None)  # [a, c, d]
        filter_tracks([a, b], [], [b])            # [b]
    """
    tracks = unique_by_uri(included_tracks)

    excluded_uris = {track.uri for track in excluded_tracks}
    tracks = [track for track in tracks if track.uri not in excluded_uris]

    if required_tracks is not None:
        required_uris = {track.uri for track in required_tracks}
        tracks = [track for track in tracks if track.uri in required_uris]

    return tracks


def get_tracks_from_playlists(
    client: SpotifyClient,
    playlists: Iterable[Playlist],
    threads: int = 4
) -> list[Track]:
    """
    Fetch and concatenate the tracks of several playlists.

    Playlists are fetched concurrently, but the result is always in
    playlist order. The first failure is raised once all fetches have
    been submitted; no partial list is returned.

    Raises:
        SpotifyError: If any playlist's tracks cannot be fetched.
    """
    playlist_ids = [playlist.id for playlist in playlists]
    if not playlist_ids:
        return []

    with ThreadPoolExecutor(max_workers=max(1, min(threads, len(playlist_ids)))) as executor:
        per_playlist = list(executor.map(client.playlist_all_tracks, playlist_ids))

    return [track for tracks in per_playlist for track in tracks]


def reconcile(
    client: SpotifyClient,
    included: Iterable[Playlist],
    excluded: Iterable[Playlist],
    required: Iterable[Playlist],
    threads: int = 4
) -> list[Track]:
    """
    Compute the ordered track list for three playlist groups.

    Args:
        client: Spotify client used to fetch tracks.
        included: Playlists whose tracks are collected, in order.
        excluded: Playlists whose tracks are removed.
        required: Playlists a track must appear in. Empty means no
                  requirement at all (not an empty result).
        threads: Maximum concurrent playlist fetches per group.

    Returns:
        The final track list.

    Raises:
        SpotifyError: If any playlist of any group cannot be read.
    """
    required = list(required)

    included_tracks = get_tracks_from_playlists(client, included, threads)
    excluded_tracks = get_tracks_from_playlists(client, excluded, threads)
    required_tracks = (
        get_tracks_from_playlists(client, required, threads) if required else None
    )

    tracks = filter_tracks(included_tracks, excluded_tracks, required_tracks)
    logger.debug(
        f"Reconciled {len(included_tracks)} included tracks into {len(tracks)} "
        f"({len(excluded_tracks)} excluded"
        + (f", {len(required_tracks)} required)" if required_tracks is not None else ")")
    )
    return tracks
