"""
Command-line interface for spot-synchronizer.

This module implements the CLI using Click, providing the commands for
creating and resynchronizing synchronized playlists.
rich-click is used for the output colors.

Commands:
    spot-sync create NAME -i <id> [-e <id>] [-r <id>]   Create a synchronized playlist
    spot-sync list                                      List synchronized playlists
    spot-sync sync <id>...                              Resynchronize some playlists
    spot-sync sync --all                                Resynchronize every playlist
    spot-sync preview -i <id> [-e <id>] [-r <id>]       Show the tracks, write nothing
    spot-sync delete <id>                               Delete a synchronized playlist
    spot-sync logout                                    Forget the cached Spotify login

Options:
    --config <path>                                     Use another config.yaml

Usage:
    # Everything in "Rock" and "Indie", minus "Overplayed"
    spot-sync create "Rock + Indie" -i <rock-id> -i <indie-id> -e <overplayed-id>

    # Only tracks that are also in "Favorites"
    spot-sync create "Favorite Rock" -i <rock-id> -r <favorites-id>

    # Bring all synchronized playlists up to date
    spot-sync sync --all

Playlist References:
    Every <id> may be a bare playlist ID, a spotify:playlist: URI or an
    https://open.spotify.com/playlist/... link.

Exit Codes:
    0    Success
    1    Configuration error (or unexpected error)
    3    Spotify error (authentication, network, unavailable playlist)
    4    Other error (cover upload, unreadable definition, failed syncs)
    130  Interrupted by user
"""

import sys
from pathlib import Path
from typing import Callable, Optional

import rich_click as click
from tqdm import tqdm

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100
click.rich_click.COMMAND_GROUPS = {
    "spot-sync": [
        {
            "name": "Synchronized Playlists",
            "commands": ["create", "list", "sync", "preview", "delete"],
        },
        {
            "name": "Account",
            "commands": ["logout"],
        },
    ],
}

from spot_synchronizer import __version__
from spot_synchronizer.core import (
    Config,
    ConfigError,
    SpotifyError,
    SpotSynchronizerError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from spot_synchronizer.spotify import Playlist, SpotifyClient, clear_token_cache
from spot_synchronizer.sync import (
    CoverProvisioner,
    SynchronizedPlaylist,
    Synchronizer,
    SyncResult,
)
from spot_synchronizer.utils import extract_playlist_id, format_duration

logger = get_logger(__name__)


def _playlist_group_options(func: Callable) -> Callable:
    """Attach the --include / --exclude / --require options to a command."""
    func = click.option(
        "-r", "--require", "required",
        multiple=True,
        metavar="<playlist>",
        help="Keep only tracks also found in this playlist (repeatable)"
    )(func)
    func = click.option(
        "-e", "--exclude", "excluded",
        multiple=True,
        metavar="<playlist>",
        help="Remove tracks found in this playlist (repeatable)"
    )(func)
    func = click.option(
        "-i", "--include", "included",
        multiple=True,
        required=True,
        metavar="<playlist>",
        help="Take tracks from this playlist (repeatable, in order)"
    )(func)
    return func


@click.group(invoke_without_command=True)
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml)"
)
@click.option(
    "--version",
    is_flag=True,
    help="Show version and exit."
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], version: bool) -> None:
    """
    spot-synchronizer: Playlists built from other playlists.

    A synchronized playlist collects the tracks of its [bold]included[/]
    playlists, drops those found in its [bold]excluded[/] playlists and,
    when [bold]required[/] playlists are given, keeps only tracks found in
    one of them. Its rules are stored in its own cover image, so nothing
    needs to be kept locally.

    \b
    BASIC USAGE:
        spot-sync create "Mix" -i <id> -i <id> -e <id>   # Create
        spot-sync list                                   # Show all
        spot-sync sync --all                             # Update all
    """
    if version:
        click.echo(f"spot-synchronizer {__version__}")
        ctx.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


# =============================================================================
# Commands
# =============================================================================

@cli.command()
@click.argument("name")
@_playlist_group_options
@click.pass_context
def create(
    ctx: click.Context,
    name: str,
    included: tuple[str, ...],
    excluded: tuple[str, ...],
    required: tuple[str, ...]
) -> None:
    """Create a new synchronized playlist called NAME and fill it."""
    included_ids = _parse_playlist_refs(included)
    excluded_ids = _parse_playlist_refs(excluded)
    required_ids = _parse_playlist_refs(required)

    def action(client: SpotifyClient, synchronizer: Synchronizer) -> None:
        synchronized = synchronizer.create(
            name,
            _resolve_playlists(client, included_ids),
            _resolve_playlists(client, excluded_ids),
            _resolve_playlists(client, required_ids),
        )
        playlist = synchronized.playlist
        click.echo(f"Created '{playlist.name}': {playlist.spotify_url}")
        if playlist.cover_url is None:
            click.echo(
                "Spotify is still processing the cover; the playlist will show "
                "up in 'spot-sync list' once it is done.",
                err=True
            )

    _run(ctx.obj["config_path"], action)


@cli.command(name="list")
@click.pass_context
def list_playlists(ctx: click.Context) -> None:
    """List your synchronized playlists and their rules."""
    def action(client: SpotifyClient, synchronizer: Synchronizer) -> None:
        synchronized_playlists = synchronizer.discover()
        if not synchronized_playlists:
            click.echo("No synchronized playlists found.")
            return
        for synchronized in synchronized_playlists:
            _print_synchronized_playlist(synchronized)

    _run(ctx.obj["config_path"], action)


@cli.command()
@click.argument("playlists", nargs=-1, metavar="[PLAYLIST]...")
@click.option(
    "--all", "sync_all",
    is_flag=True,
    help="Resynchronize every synchronized playlist"
)
@click.pass_context
def sync(ctx: click.Context, playlists: tuple[str, ...], sync_all: bool) -> None:
    """Recompute and overwrite the tracks of synchronized playlists."""
    if sync_all and playlists:
        raise click.UsageError("Cannot use both --all and playlist arguments")
    if not sync_all and not playlists:
        raise click.UsageError("Give at least one playlist, or use --all")
    playlist_ids = _parse_playlist_refs(playlists)

    def action(client: SpotifyClient, synchronizer: Synchronizer) -> None:
        if sync_all:
            targets = synchronizer.discover()
        else:
            targets = [synchronizer.get(playlist_id) for playlist_id in playlist_ids]

        if not targets:
            click.echo("No synchronized playlists found.")
            return

        with tqdm(total=len(targets), desc="Synchronizing", unit="playlist") as progress:
            results = synchronizer.synchronize_all(
                targets,
                on_result=lambda result: progress.update(1)
            )

        failed = _print_sync_results(results)
        if failed:
            sys.exit(4)

    _run(ctx.obj["config_path"], action)


@cli.command()
@_playlist_group_options
@click.pass_context
def preview(
    ctx: click.Context,
    included: tuple[str, ...],
    excluded: tuple[str, ...],
    required: tuple[str, ...]
) -> None:
    """Show the tracks a synchronized playlist would get, without creating it."""
    included_ids = _parse_playlist_refs(included)
    excluded_ids = _parse_playlist_refs(excluded)
    required_ids = _parse_playlist_refs(required)

    def action(client: SpotifyClient, synchronizer: Synchronizer) -> None:
        tracks = synchronizer.preview(
            _resolve_playlists(client, included_ids),
            _resolve_playlists(client, excluded_ids),
            _resolve_playlists(client, required_ids),
        )
        width = len(str(len(tracks)))
        for number, track in enumerate(tracks, start=1):
            click.echo(f"{number:>{width}}. {track.name} ({format_duration(track.duration_ms)})")
        total_ms = sum(track.duration_ms for track in tracks)
        click.echo(f"{len(tracks)} tracks, {format_duration(total_ms)}")

    _run(ctx.obj["config_path"], action)


@cli.command()
@click.argument("playlist", metavar="PLAYLIST")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete(ctx: click.Context, playlist: str, yes: bool) -> None:
    """Delete (unfollow) a synchronized playlist."""
    playlist_id = _parse_playlist_refs((playlist,))[0]

    def action(client: SpotifyClient, synchronizer: Synchronizer) -> None:
        target = client.playlist(playlist_id)
        if not yes and not click.confirm(f"Delete '{target.name}'?"):
            click.echo("Aborted.")
            return
        synchronizer.delete(target)
        click.echo(f"Deleted '{target.name}'")

    _run(ctx.obj["config_path"], action)


@cli.command()
@click.pass_context
def logout(ctx: click.Context) -> None:
    """Forget the cached Spotify login."""
    try:
        config = _load_configuration(ctx.obj["config_path"])
    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    if clear_token_cache(config.spotify):
        click.echo("Logged out.")
    else:
        click.echo("Not logged in.")


# =============================================================================
# Workflow
# =============================================================================

def _run(
    config_path: Path | None,
    action: Callable[[SpotifyClient, Synchronizer], None]
) -> None:
    """
    Execute a command that talks to Spotify.

    This is the orchestration shared by every command that needs a client:
    1. Loads configuration
    2. Sets up logging
    3. Builds the Spotify client, cover provisioner and synchronizer
    4. Runs the command's action
    5. Maps errors to exit codes

    Raises:
        SystemExit: On fatal errors (with appropriate exit code).
    """
    try:
        config = _load_configuration(config_path)

        setup_logging(config.output.directory)
        logger.info("spot-synchronizer starting")

        client, synchronizer = _initialize_synchronizer(config)
        action(client, synchronizer)

        logger.info("spot-synchronizer completed successfully")

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    except SpotifyError as e:
        click.echo(f"Spotify error: {e.message}", err=True)
        if e.is_auth_error:
            click.echo(
                "Check client_id and redirect_uri in config.yaml, "
                "or run 'spot-sync logout' and log in again",
                err=True
            )
        logger.error(f"Spotify error: {e.message}", exc_info=True)
        sys.exit(3)

    except SpotSynchronizerError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        sys.exit(4)

    except click.Abort:
        click.echo("\nAborted", err=True)
        sys.exit(1)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        sys.exit(130)

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error")
        sys.exit(1)

    finally:
        shutdown_logging()


def _load_configuration(config_path: Path | None) -> Config:
    """
    Load and validate configuration from config.yaml.

    Raises:
        ConfigError: If configuration is invalid or missing.
    """
    return load_config(config_path)


def _initialize_synchronizer(config: Config) -> tuple[SpotifyClient, Synchronizer]:
    """
    Build the Spotify client and the synchronizer around it.

    The client owns the token provider (spotipy auth manager); the
    provisioner and synchronizer receive it explicitly.
    """
    client = SpotifyClient.from_config(config.spotify)
    user = client.current_user()
    logger.info(f"Logged in as {user.get('display_name') or user.get('id')}")

    provisioner = CoverProvisioner(client, config.sync)
    return client, Synchronizer(client, provisioner, threads=config.sync.threads)


def _parse_playlist_refs(refs: tuple[str, ...]) -> list[str]:
    """Turn playlist URLs, URIs or IDs into IDs; invalid ones are usage errors."""
    try:
        return [extract_playlist_id(ref) for ref in refs]
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def _resolve_playlists(client: SpotifyClient, playlist_ids: list[str]) -> list[Playlist]:
    """Fetch the playlists named on the command line, in the given order."""
    return [client.playlist(playlist_id) for playlist_id in playlist_ids]


# =============================================================================
# Output
# =============================================================================

def _print_synchronized_playlist(synchronized: SynchronizedPlaylist) -> None:
    playlist = synchronized.playlist
    click.echo(f"{playlist.name}  ({playlist.id})")

    groups = [
        ("included", synchronized.included_playlists),
        ("excluded", synchronized.excluded_playlists),
        ("required", synchronized.required_playlists),
    ]
    for label, members in groups:
        if members:
            names = ", ".join(member.name for member in members)
            click.echo(f"    {label}: {names}")


def _print_sync_results(results: list[SyncResult]) -> int:
    """
    Print the outcome of each resynchronized playlist.

    Returns:
        Number of playlists that failed.
    """
    failed = 0

    for result in results:
        if result.success:
            click.echo(f"✓ {result.playlist.name}: {len(result.tracks)} tracks")
        else:
            failed += 1
            click.echo(f"✗ {result.playlist.name}: {result.error.message}", err=True)

    logger.info("=" * 60)
    logger.info(f"Synchronized:      {len(results) - failed}")
    logger.info(f"Failed:            {failed}")
    logger.info("=" * 60)

    return failed


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `spot-sync` from the command line.
    It invokes the Click CLI group.
    """
    cli()


if __name__ == "__main__":
    main()
