import argparse
import logging
import sys
import time

from clipkeeper import __version__
from clipkeeper.archive import ImageArchive
from clipkeeper.config import DB_PATH, IMAGE_DIR, LOG_PATH
from clipkeeper.pipeline import ClipboardPipeline
from clipkeeper.settings import SettingsService
from clipkeeper.storage import StorageManager
from clipkeeper.utils import ensure_dirs
from clipkeeper.watcher import ClipboardWatcher, PyperclipWatcher

logger = logging.getLogger("clipkeeper")


def create_watcher() -> ClipboardWatcher:
    """Pick the clipboard listener for this platform."""
    if sys.platform == "darwin":
        from clipkeeper.pasteboard import PasteboardWatcher

        return PasteboardWatcher()
    return PyperclipWatcher()


def build_pipeline(watcher: ClipboardWatcher | None = None) -> ClipboardPipeline:
    ensure_dirs()
    storage = StorageManager(DB_PATH, archive=ImageArchive(IMAGE_DIR))
    return ClipboardPipeline(storage, watcher or create_watcher(), SettingsService(storage))


def configure_logging(verbose: bool = False) -> None:
    ensure_dirs()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(LOG_PATH),
            logging.StreamHandler(sys.stderr),
        ],
    )


def format_entry(entry) -> str:
    pin = "*" if entry.is_pinned else " "
    label = f"[{entry.type_label}] " if entry.type_label else ""
    return f"{entry.id:>5} {pin} {entry.time_ago():>9}  {label}{entry.display_text}"


def run_app(pipeline: ClipboardPipeline) -> int:
    """Capture clipboard changes until interrupted."""
    pipeline.subscribe(lambda entries: logger.info("History updated (%d entries shown)", len(entries)))
    pipeline.start()
    logger.info("clipkeeper %s watching the clipboard, Ctrl+C to stop", __version__)
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        pipeline.stop()
    return 0


def list_entries(pipeline: ClipboardPipeline, limit: int | None) -> int:
    entries = pipeline.entries()
    if limit is not None:
        entries = entries[:limit]
    if not entries:
        print("(No clipboard history)")
        return 0
    for entry in entries:
        print(format_entry(entry))
    return 0


def run_command(pipeline: ClipboardPipeline, args: argparse.Namespace) -> int:
    if args.command == "list":
        return list_entries(pipeline, args.count)
    if args.command == "copy":
        if pipeline.copy_entry(args.id):
            print("Copied to clipboard")
            return 0
        print(f"Could not copy entry {args.id}")
        return 1
    if args.command == "pin":
        pinned = pipeline.toggle_pin(args.id)
        print("Pinned" if pinned else "Unpinned")
        return 0
    if args.command == "delete":
        if pipeline.delete_entry(args.id):
            print(f"Deleted entry {args.id}")
            return 0
        print(f"No entry {args.id}")
        return 1
    if args.command == "clear":
        removed = pipeline.clear_all()
        print(f"Removed {removed} entries (pinned entries kept)")
        return 0
    if args.command == "limit":
        if args.value is None:
            print(pipeline.history_limit)
            return 0
        try:
            evicted = pipeline.set_history_limit(args.value)
        except ValueError as exc:
            print(str(exc))
            return 1
        print(f"History limit set to {args.value} ({evicted} entries evicted)")
        return 0
    return run_app(pipeline)


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clipkeeper",
        description="clipkeeper - clipboard history with dedup and pinning",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  clipkeeper run         # watch the clipboard in the foreground
  clipkeeper list -n 10  # show the ten newest entries
  clipkeeper pin 42      # pin or unpin entry 42
  clipkeeper limit 100   # keep up to 100 unpinned entries
""",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("run", help="Watch the clipboard in the foreground (default)")

    list_parser = sub.add_parser("list", help="Show clipboard history")
    list_parser.add_argument("-n", "--count", type=positive_int, default=None, help="Number of entries to show")

    for name, help_text in (
        ("copy", "Copy an entry back onto the clipboard"),
        ("pin", "Toggle the pin on an entry"),
        ("delete", "Delete an entry"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("id", type=int, help="Entry id as shown by 'list'")

    sub.add_parser("clear", help="Remove all unpinned entries")

    limit_parser = sub.add_parser("limit", help="Show or set the history limit")
    limit_parser.add_argument("value", type=int, nargs="?", help="New limit (>= 1)")
    return parser


def main(argv: list[str] | None = None):
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    pipeline = build_pipeline()
    try:
        code = run_command(pipeline, args)
    finally:
        pipeline.close()
    sys.exit(code)


if __name__ == "__main__":
    main()
