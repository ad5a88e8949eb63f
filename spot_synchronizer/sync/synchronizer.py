"""
Synchronization orchestrator for spot-synchronizer.

Each operation is a short, independent run against Spotify; no state is
kept between runs other than what lives on Spotify itself (the marker
description, the cover carrying the definition, and the track list).

Operations:
    create          New synchronized playlist: marker, cover, tracks
    discover        Find the user's synchronized playlists and decode their rules
    get             Materialize one synchronized playlist by ID
    synchronize     Recompute and wholesale-replace one playlist's tracks
    synchronize_all Resynchronize many playlists, isolating failures
    preview         Compute a track list without writing anything
    delete          Unfollow (delete) a synchronized playlist

Recovery:
    A run interrupted half-way can leave a playlist with its marker and
    cover but a stale or incomplete track list. Running discover and
    synchronize again overwrites it completely; there is no rollback.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Callable

from spot_synchronizer.core.exceptions import (
    AuthRequiredError,
    DefinitionError,
    DefinitionNotFoundError,
    OperationCancelledError,
    SpotifyError,
    SpotSynchronizerError,
)
from spot_synchronizer.core.logger import get_logger, log_sync_failure
from spot_synchronizer.spotify.client import SpotifyClient
from spot_synchronizer.spotify.models import CoverImage, Playlist, Track
from spot_synchronizer.sync.covers import CoverProvisioner
from spot_synchronizer.sync.models import (
    SYNCHRONIZED_MARKER,
    SynchronizationDefinition,
    SynchronizedPlaylist,
    is_synchronized_candidate,
)
from spot_synchronizer.sync.reconcile import reconcile

logger = get_logger(__name__)


@dataclass(frozen=True)
class SyncResult:
    """
    Outcome of resynchronizing one playlist in synchronize_all().

    Attributes:
        playlist: The playlist that was processed.
        tracks: The track list written, or None if the run failed.
        error: The failure, or None on success.
    """
    playlist: Playlist
    tracks: tuple[Track, ...] | None = None
    error: SpotSynchronizerError | None = None

    @property
    def success(self) -> bool:
        return self.error is None


class Synchronizer:
    """
    Creates, discovers and resynchronizes synchronized playlists.

    Attributes:
        _client: Spotify client (carries the token provider).
        _provisioner: Writes and reads definitions through covers.
        _threads: Worker threads for independent fetches.
    """

    def __init__(
        self,
        client: SpotifyClient,
        provisioner: CoverProvisioner,
        threads: int = 4
    ) -> None:
        self._client = client
        self._provisioner = provisioner
        self._threads = max(1, threads)

    # =========================================================================
    # Create
    # =========================================================================

    def create(
        self,
        name: str,
        included: list[Playlist],
        excluded: list[Playlist],
        required: list[Playlist],
        cancel: threading.Event | None = None
    ) -> SynchronizedPlaylist:
        """
        Create a new synchronized playlist and fill it.

        Args:
            name: Name of the new playlist.
            included: Playlists whose tracks are collected, in order.
            excluded: Playlists whose tracks are removed.
            required: Playlists a track must appear in (empty: no requirement).
            cancel: Optional event aborting the cover retry/poll waits.

        Returns:
            The new SynchronizedPlaylist. Its playlist has no cover URL if
            Spotify did not finish processing the cover in time; such a
            playlist is filled but not discoverable until it does.

        Behavior:
            1. Create the playlist with the marker description
            2. Provision the cover carrying the definition
            3. Reconcile the track list
            4. Append the tracks (chunks of 100)
            5. If the cover was not ready yet, poll once more (best effort:
               a failed or cancelled poll only leaves the cover URL unset)

        Raises:
            CoverUploadError: If the cover could not be uploaded.
            SpotifyError: If creating, reading or writing playlists fails.
        """
        logger.info(f"Creating synchronized playlist '{name}'")

        playlist = self._client.create_playlist(name, SYNCHRONIZED_MARKER)
        definition = SynchronizationDefinition.from_playlists(included, excluded, required)

        cover_url = self._provisioner.provision(playlist.id, definition, cancel)

        tracks = reconcile(self._client, included, excluded, required, self._threads)
        self._client.add_tracks(playlist.id, [track.uri for track in tracks])
        logger.info(f"Added {len(tracks)} tracks to '{name}'")

        if cover_url is None:
            try:
                cover_url = self._provisioner.wait_for_cover(playlist.id, cancel)
            except (SpotifyError, OperationCancelledError) as e:
                logger.warning(f"Could not fetch cover URL for '{name}': {e.message}")

        if cover_url is not None:
            playlist = replace(playlist, cover=CoverImage(url=cover_url))

        return SynchronizedPlaylist(
            playlist=playlist,
            included_playlists=tuple(included),
            excluded_playlists=tuple(excluded),
            required_playlists=tuple(required),
        )

    # =========================================================================
    # Discover
    # =========================================================================

    def discover(self) -> list[SynchronizedPlaylist]:
        """
        Find every synchronized playlist owned by the user.

        Candidates (marker description and a cover) are materialized
        concurrently. A candidate whose definition cannot be read, or
        whose constituent playlists cannot be resolved, is logged to the
        sync failure report and left out; the others are still returned.

        Returns:
            Synchronized playlists in library order.

        Raises:
            AuthRequiredError: If the credential is missing or invalid.
            SpotifyError: If the playlist library itself cannot be listed.
        """
        candidates = [
            playlist
            for playlist in self._client.current_user_owned_playlists()
            if is_synchronized_candidate(playlist)
        ]
        logger.debug(f"Found {len(candidates)} synchronized playlist candidates")

        if not candidates:
            return []

        synchronized: list[SynchronizedPlaylist] = []

        with ThreadPoolExecutor(max_workers=min(self._threads, len(candidates))) as executor:
            futures = [executor.submit(self.materialize, playlist) for playlist in candidates]

            for playlist, future in zip(candidates, futures):
                try:
                    synchronized.append(future.result())
                except AuthRequiredError:
                    raise
                except (DefinitionError, SpotifyError) as e:
                    log_sync_failure(logger, playlist.name, playlist.id, e.message)

        logger.info(f"Discovered {len(synchronized)} synchronized playlists")
        return synchronized

    def materialize(self, playlist: Playlist) -> SynchronizedPlaylist:
        """
        Read a playlist's definition from its cover and resolve its IDs.

        Raises:
            DefinitionNotFoundError: If the cover carries no definition.
            DefinitionCorruptError: If the stored definition is malformed.
            PlaylistUnavailableError: If a referenced playlist is gone.
        """
        definition = self._provisioner.read_definition(playlist)

        ids = definition.included + definition.excluded + definition.required
        with ThreadPoolExecutor(max_workers=max(1, min(self._threads, len(ids) or 1))) as executor:
            resolved = list(executor.map(self._client.playlist, ids))

        n_included = len(definition.included)
        n_excluded = len(definition.excluded)

        return SynchronizedPlaylist(
            playlist=playlist,
            included_playlists=tuple(resolved[:n_included]),
            excluded_playlists=tuple(resolved[n_included:n_included + n_excluded]),
            required_playlists=tuple(resolved[n_included + n_excluded:]),
        )

    def get(self, playlist_id: str) -> SynchronizedPlaylist:
        """
        Materialize one synchronized playlist by ID.

        Raises:
            DefinitionNotFoundError: If the playlist lacks the marker or a cover.
            DefinitionError / SpotifyError: As for materialize().
        """
        playlist = self._client.playlist(playlist_id)
        if not is_synchronized_candidate(playlist):
            raise DefinitionNotFoundError(
                f"Playlist '{playlist.name}' is not a synchronized playlist",
                details={"playlist_id": playlist_id}
            )
        return self.materialize(playlist)

    # =========================================================================
    # Resynchronize
    # =========================================================================

    def synchronize(self, synchronized_playlist: SynchronizedPlaylist) -> list[Track]:
        """
        Recompute a playlist's tracks and overwrite its track list.

        The playlist is cleared and refilled with exactly the reconciled
        tracks, so running it twice with unchanged sources writes the same
        list twice.

        Returns:
            The track list written.

        Raises:
            SpotifyError: If any source playlist cannot be read or the
                          target cannot be written. Nothing is written
                          if reconciliation fails.
        """
        playlist = synchronized_playlist.playlist
        tracks = reconcile(
            self._client,
            synchronized_playlist.included_playlists,
            synchronized_playlist.excluded_playlists,
            synchronized_playlist.required_playlists,
            self._threads
        )
        self._client.replace_tracks(playlist.id, [track.uri for track in tracks])
        logger.info(f"Synchronized '{playlist.name}': {len(tracks)} tracks")
        return tracks

    def synchronize_all(
        self,
        synchronized_playlists: list[SynchronizedPlaylist],
        on_result: Callable[[SyncResult], None] | None = None
    ) -> list[SyncResult]:
        """
        Resynchronize several playlists one after another.

        A failure of one playlist is logged to the sync failure report and
        recorded in its SyncResult; the remaining playlists still run.
        Authentication errors stop the whole batch.

        Args:
            synchronized_playlists: Playlists to resynchronize, in order.
            on_result: Called with each SyncResult as soon as it is known
                       (e.g. to advance a progress bar).
        """
        results: list[SyncResult] = []

        for synchronized_playlist in synchronized_playlists:
            playlist = synchronized_playlist.playlist
            try:
                tracks = self.synchronize(synchronized_playlist)
                results.append(SyncResult(playlist=playlist, tracks=tuple(tracks)))
            except AuthRequiredError:
                raise
            except SpotSynchronizerError as e:
                log_sync_failure(logger, playlist.name, playlist.id, e.message)
                results.append(SyncResult(playlist=playlist, error=e))

            if on_result is not None:
                on_result(results[-1])

        return results

    # =========================================================================
    # Preview / Delete
    # =========================================================================

    def preview(
        self,
        included: list[Playlist],
        excluded: list[Playlist],
        required: list[Playlist]
    ) -> list[Track]:
        """Compute the track list a synchronized playlist would get, writing nothing."""
        return reconcile(self._client, included, excluded, required, self._threads)

    def delete(self, playlist: Playlist) -> None:
        """
        Unfollow a synchronized playlist, removing it from the library.

        Raises:
            SpotSynchronizerError: If the playlist is not marked as
                                   synchronized (refuses to delete it).
        """
        if playlist.description != SYNCHRONIZED_MARKER:
            raise SpotSynchronizerError(
                f"Refusing to delete '{playlist.name}': not a synchronized playlist",
                details={"playlist_id": playlist.id}
            )
        self._client.unfollow_playlist(playlist.id)
        logger.info(f"Deleted synchronized playlist '{playlist.name}'")
