"""
Data models for synchronized playlists.

SynchronizationDefinition is the rule (three ordered id sequences) and is
the only thing ever persisted, inside the playlist cover.
SynchronizedPlaylist is a view materialized on demand by resolving those
ids through the Spotify API.
"""

from dataclasses import dataclass, field

from spot_synchronizer.spotify.models import Playlist


# Description marking a playlist as managed by this application
SYNCHRONIZED_MARKER = "@synchronized"


@dataclass(frozen=True)
class SynchronizationDefinition:
    """
    Rule deriving a synchronized playlist's tracks from other playlists.

    Attributes:
        included: Playlist IDs whose tracks are collected, in order.
        excluded: Playlist IDs whose tracks are removed from the result.
        required: Playlist IDs a track must appear in to be kept.
                  Empty means no such constraint.

    Equality is structural: two definitions with the same three
    sequences are the same rule.
    """
    included: tuple[str, ...] = ()
    excluded: tuple[str, ...] = ()
    required: tuple[str, ...] = ()

    @classmethod
    def from_playlists(
        cls,
        included: list[Playlist],
        excluded: list[Playlist],
        required: list[Playlist]
    ) -> "SynchronizationDefinition":
        return cls(
            included=tuple(p.id for p in included),
            excluded=tuple(p.id for p in excluded),
            required=tuple(p.id for p in required),
        )


@dataclass(frozen=True)
class SynchronizedPlaylist:
    """
    A managed playlist together with the resolved playlists of its rule.

    Attributes:
        playlist: The synchronized playlist itself.
        included_playlists: Resolved playlists for definition.included.
        excluded_playlists: Resolved playlists for definition.excluded.
        required_playlists: Resolved playlists for definition.required.
    """
    playlist: Playlist
    included_playlists: tuple[Playlist, ...] = field(default_factory=tuple)
    excluded_playlists: tuple[Playlist, ...] = field(default_factory=tuple)
    required_playlists: tuple[Playlist, ...] = field(default_factory=tuple)

    @property
    def definition(self) -> SynchronizationDefinition:
        """The rule this playlist is governed by."""
        return SynchronizationDefinition.from_playlists(
            list(self.included_playlists),
            list(self.excluded_playlists),
            list(self.required_playlists),
        )


def is_synchronized_candidate(playlist: Playlist) -> bool:
    """
    Check the cheap preconditions for a synchronized playlist.

    The description must equal the marker and a cover must exist. This
    does not prove the playlist is synchronized: only a cover carrying a
    readable definition does.
    """
    return playlist.description == SYNCHRONIZED_MARKER and playlist.cover_url is not None
