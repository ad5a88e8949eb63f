"""
Synchronization engine for spot-synchronizer.

    - models: SynchronizationDefinition and SynchronizedPlaylist
    - definition: encoding of definitions into cover comment payloads
    - covers: CoverProvisioner, writing/reading definitions via covers
    - reconcile: track list computation (dedupe, exclude, require)
    - synchronizer: Synchronizer, the create/discover/synchronize operations

Usage:
    from spot_synchronizer.sync import CoverProvisioner, Synchronizer

    provisioner = CoverProvisioner(client, config.sync)
    synchronizer = Synchronizer(client, provisioner, threads=config.sync.threads)
    for synchronized in synchronizer.discover():
        synchronizer.synchronize(synchronized)
"""

from spot_synchronizer.sync.covers import CoverProvisioner, cover_is_ready
from spot_synchronizer.sync.definition import decode_definition, encode_definition
from spot_synchronizer.sync.models import (
    SYNCHRONIZED_MARKER,
    SynchronizationDefinition,
    SynchronizedPlaylist,
    is_synchronized_candidate,
)
from spot_synchronizer.sync.reconcile import (
    filter_tracks,
    get_tracks_from_playlists,
    reconcile,
    unique_by_uri,
)
from spot_synchronizer.sync.synchronizer import Synchronizer, SyncResult

__all__ = [
    # Models
    "SYNCHRONIZED_MARKER",
    "SynchronizationDefinition",
    "SynchronizedPlaylist",
    "is_synchronized_candidate",
    # Definition codec
    "encode_definition",
    "decode_definition",
    # Covers
    "CoverProvisioner",
    "cover_is_ready",
    # Reconciliation
    "filter_tracks",
    "get_tracks_from_playlists",
    "reconcile",
    "unique_by_uri",
    # Orchestration
    "Synchronizer",
    "SyncResult",
]
