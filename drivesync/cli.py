"""
Command-line interface for Drive Sync.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from . import paths
from .config import SyncSettings
from .drive.auth import sign_in_interactive
from .drive.utils import parse_drive_folder_url
from .sync import SyncOrchestrator
from .utils import setup_logging, format_timestamp_ms, format_size


class Colors:
    RESET = "\x1b[0m"
    BOLD = "\x1b[1m"
    DIM = "\x1b[2m"
    GREEN = "\x1b[32m"
    RED = "\x1b[31m"
    PURPLE = "\x1b[38;2;138;43;226m"


def _fail(result) -> int:
    c = Colors
    print(f"{c.RED}Error:{c.RESET} {result.error}")
    if result.needs_login:
        print("Run `sync.py login` to sign in again.")
    return 1


def cmd_login(app: SyncOrchestrator, args) -> int:
    if args.auth_code or args.id_token:
        result = app.login(id_token=args.id_token or "", server_auth_code=args.auth_code)
    else:
        settings = app.settings
        if not settings.client_id:
            print("No OAuth client configured. Set DRIVESYNC_CLIENT_ID / DRIVESYNC_CLIENT_SECRET.")
            return 1
        print("Opening browser for Google sign-in...")
        try:
            creds = sign_in_interactive(settings.client_id, settings.client_secret)
        except Exception as e:
            print(f"Sign-in error: {e}")
            return 1
        result = app.login_with_credentials(creds)

    if not result.ok:
        return _fail(result)
    print(f"Signed in as {result.value}")
    return 0


def cmd_logout(app: SyncOrchestrator, args) -> int:
    app.logout()
    print("Signed out. Drive songs removed from the library.")
    return 0


def cmd_status(app: SyncOrchestrator, args) -> int:
    c = Colors
    state = app.tokens.state.value
    print(f"Account: {app.account.label if app.is_logged_in else '-'} ({state})")
    folders = app.tracked_folders.value
    if not folders:
        print("No tracked folders. Add one with `sync.py add <folder link>`.")
        return 0
    print()
    for folder in folders:
        print(f"{c.PURPLE}▐{c.RESET} {c.BOLD}{folder.name}{c.RESET} {c.DIM}{folder.folder_id}{c.RESET}")
        print(f"  {folder.song_count} songs, last synced {format_timestamp_ms(folder.last_sync_time_ms)}")
    return 0


def cmd_browse(app: SyncOrchestrator, args) -> int:
    result = app.list_remote_folders(args.parent_id)
    if not result.ok:
        return _fail(result)
    if not result.value:
        print("No folders.")
    for folder in result.value:
        print(f"{folder.folder_id}  {folder.name}")
    return 0


def cmd_create(app: SyncOrchestrator, args) -> int:
    result = app.create_tracked_folder(args.parent_id)
    if not result.ok:
        return _fail(result)
    print(f"Created and tracking '{result.value.name}' ({result.value.folder_id})")
    return 0


def cmd_add(app: SyncOrchestrator, args) -> int:
    folder_id, error = parse_drive_folder_url(args.folder)
    if error:
        print(f"Error: {error}")
        return 1
    result = app.add_tracked_folder(folder_id, args.name or folder_id)
    print(f"Tracking '{result.value.name}'. Run `sync.py sync {folder_id}` to fetch songs.")
    return 0


def cmd_remove(app: SyncOrchestrator, args) -> int:
    result = app.remove_tracked_folder(args.folder_id)
    if not result.ok:
        return _fail(result)
    print(f"Removed {args.folder_id}")
    return 0


def cmd_sync(app: SyncOrchestrator, args) -> int:
    c = Colors
    if args.folder_id:
        result = app.sync_folder(args.folder_id, recursive=not args.no_recursive)
        if not result.ok:
            return _fail(result)
        print(f"{c.GREEN}Synced {result.value} songs{c.RESET}")
        return 0

    result = app.sync_all_tracked_folders(recursive=False if args.no_recursive else None)
    if not result.ok:
        return _fail(result)
    bulk = result.value
    print(f"{bulk.folder_count} folders, {bulk.synced_song_count} songs, {bulk.failed_folder_count} failed")
    for folder_id, message in bulk.failures.items():
        print(f"  {c.RED}{folder_id}{c.RESET}: {message}")
    return 1 if bulk.failed_folder_count else 0


def cmd_songs(app: SyncOrchestrator, args) -> int:
    if args.search:
        songs = app.search_songs(args.search)
    elif args.folder:
        songs = app.get_folder_songs(args.folder)
    else:
        songs = app.get_all_songs()

    for song in songs:
        print(f"{song.artist} - {song.title}  {Colors.DIM}({format_size(song.size_bytes)}){Colors.RESET}")
    print(f"\n{len(songs)} songs")
    return 0


COMMANDS = {
    "login": cmd_login,
    "logout": cmd_logout,
    "status": cmd_status,
    "browse": cmd_browse,
    "create": cmd_create,
    "add": cmd_add,
    "remove": cmd_remove,
    "sync": cmd_sync,
    "songs": cmd_songs,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Drive Sync - Keep your music library in step with Google Drive",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sync.py login                    # Sign in through the browser
  sync.py add <folder link>        # Track a Drive folder
  sync.py sync                     # Sync every tracked folder
  sync.py sync <id> --no-recursive # Sync one folder, ignoring subfolders
""",
    )
    parser.add_argument("--data-dir", type=Path, help="Where tokens, folders and the catalog are kept")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to the console")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Sign in to Google Drive")
    login.add_argument("--auth-code", help="Server auth code to exchange for tokens")
    login.add_argument("--id-token", help="Identity token (limited, no refresh)")

    sub.add_parser("logout", help="Sign out and clear Drive songs")
    sub.add_parser("status", help="Show account and tracked folders")

    browse = sub.add_parser("browse", help="List Drive folders")
    browse.add_argument("parent_id", nargs="?", default="root")

    create = sub.add_parser("create", help="Create a music folder on Drive and track it")
    create.add_argument("parent_id", nargs="?", default="root")

    add = sub.add_parser("add", help="Track a Drive folder")
    add.add_argument("folder", help="Folder link or ID")
    add.add_argument("--name", help="Display name")

    remove = sub.add_parser("remove", help="Stop tracking a folder")
    remove.add_argument("folder_id")

    sync = sub.add_parser("sync", help="Sync one folder or all tracked folders")
    sync.add_argument("folder_id", nargs="?")
    sync.add_argument("--no-recursive", action="store_true", help="Skip subfolders")

    songs = sub.add_parser("songs", help="List synced songs")
    songs.add_argument("--folder", help="Only songs from this tracked folder")
    songs.add_argument("--search", help="Filter by title or artist")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.data_dir:
        paths.set_data_dir(args.data_dir)
    setup_logging(paths.get_log_path(), verbose=args.verbose)

    app = SyncOrchestrator.open(SyncSettings.load(paths.get_settings_path()))
    return COMMANDS[args.command](app, args)


if __name__ == "__main__":
    sys.exit(main())
