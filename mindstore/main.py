"""Main Entry Point for Mindstore.

Terminal client for a Mindstore library: list saved links, watch pending
items until the server finishes ingesting them, save new links and delete
old ones.

Usage:
    python -m mindstore.main list                 # Show the first page
    python -m mindstore.main list --pages 3       # Show three pages
    python -m mindstore.main list --platform youtube --search talk
    python -m mindstore.main watch                # Poll until nothing is pending
    python -m mindstore.main watch --timeout 120  # Give up after two minutes
    python -m mindstore.main add URL              # Save a link
    python -m mindstore.main delete HASH... --yes # Delete without prompting
    python -m mindstore.main --verbose list       # Enable debug logging

Exit codes: 0 success, 1 operation failed, 2 configuration error.
"""

import argparse
import asyncio
import sys
from typing import TYPE_CHECKING

from mindstore.core.config import get_config
from mindstore.core.content_saver import ContentSaver
from mindstore.core.events import ContentEvents
from mindstore.core.exceptions import ConfigurationError
from mindstore.core.http_client import ApiClient, get_timeout
from mindstore.core.library_api import LibraryApi
from mindstore.core.logger import get_logger, setup_logging
from mindstore.core.presentation import FILTER_PLATFORMS, filter_items
from mindstore.core.reconciler import LibraryReconciler
from mindstore.core.selection import SelectionController, confirmation_prompt
from mindstore.output.library_report import LibraryReportWriter, LibrarySnapshot

if TYPE_CHECKING:
    from mindstore.core.config import Config

logger = get_logger(__name__)


def snapshot_of(
    reconciler: LibraryReconciler,
    platform: str = "all",
    query: str = "",
) -> LibrarySnapshot:
    return LibrarySnapshot(
        items=filter_items(reconciler.classified(), platform, query),
        page=reconciler.page,
        has_more=reconciler.has_more,
        polling=reconciler.polling,
        error=reconciler.last_error,
    )


def _prompt_yes_no(count: int) -> bool:
    answer = input(f"{confirmation_prompt(count)} [y/N] ")
    return answer.strip().lower() in {"y", "yes"}


async def run_list(
    reconciler: LibraryReconciler,
    writer: LibraryReportWriter,
    pages: int,
    platform: str = "all",
    query: str = "",
) -> int:
    """Load `pages` pages and print the items matching the filters."""
    try:
        loaded = await reconciler.refresh()
        if loaded:
            for _ in range(pages - 1):
                if not await reconciler.load_more():
                    break
    finally:
        reconciler.dispose()

    print(writer.render(snapshot_of(reconciler, platform, query)))
    return 0 if loaded else 1


async def run_watch(
    reconciler: LibraryReconciler,
    writer: LibraryReportWriter,
    timeout: float | None,
) -> int:
    """Poll until no item is pending, printing each changed snapshot."""
    last_output: str | None = None

    def on_change(view: LibraryReconciler, reset: bool) -> None:
        nonlocal last_output
        output = writer.render(snapshot_of(view))
        if output != last_output:
            print(output, flush=True)
            last_output = output

    reconciler.add_listener(on_change)
    try:
        await reconciler.refresh()
        try:
            await asyncio.wait_for(reconciler.converged.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Gave up waiting after %ss, %d items still pending",
                timeout,
                reconciler.pending_count,
            )
            return 1
    finally:
        reconciler.dispose()

    logger.info("Library converged with %d items", len(reconciler.items))
    return 0 if reconciler.last_error is None else 1


async def run_add(saver: ContentSaver, url: str) -> int:
    outcome = await saver.save(url, source="cli")
    print(outcome.message)
    return 0 if outcome.success else 1


async def run_delete(
    reconciler: LibraryReconciler,
    events: ContentEvents,
    content_hashes: list[str],
    assume_yes: bool,
) -> int:
    selection = SelectionController(
        reconciler,
        events=events,
        confirm=None if assume_yes else _prompt_yes_no,
    )
    wanted = list(dict.fromkeys(content_hashes))
    try:
        if not await reconciler.refresh():
            print(reconciler.last_error)
            return 1
        listed = {item.key for item in reconciler.items}
        while not listed.issuperset(wanted) and await reconciler.load_more():
            listed = {item.key for item in reconciler.items}

        for content_hash in wanted:
            if content_hash in listed:
                selection.toggle(content_hash)
            else:
                print(f"Not in your library: {content_hash}")

        result = await selection.delete_selected()
    finally:
        reconciler.dispose()

    if result is None:
        print("Nothing deleted")
        return 1
    if not result.ok:
        print(selection.last_error)
        return 1
    print(f"Deleted {len(result.deleted)} items")
    return 0


async def run_command(parsed_args: argparse.Namespace, config: "Config") -> int:
    """Wire collaborators from config and dispatch the subcommand."""
    if not config.user_id:
        raise ConfigurationError("MINDSTORE_USER_ID is required for this command")

    events = ContentEvents()
    timeout = get_timeout(read=config.request_timeout)
    async with ApiClient(config.api_url, timeout=timeout) as client:
        api = LibraryApi(client)
        if parsed_args.command == "add":
            saver = ContentSaver(api, config.user_id, events=events)
            return await run_add(saver, parsed_args.url)

        reconciler = LibraryReconciler(
            api,
            config.user_id,
            events=events,
            page_size=config.page_size,
            poll_interval=parsed_args.interval or config.poll_interval,
            name="cli",
        )
        writer = LibraryReportWriter(config.api_url)

        if parsed_args.command == "list":
            return await run_list(
                reconciler, writer, parsed_args.pages, parsed_args.platform, parsed_args.search
            )
        if parsed_args.command == "watch":
            return await run_watch(reconciler, writer, parsed_args.timeout)
        if parsed_args.command == "delete":
            return await run_delete(reconciler, events, parsed_args.hashes, parsed_args.yes)
        raise ValueError(f"Unknown command {parsed_args.command!r}")


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="mindstore",
        description="Browse and manage a Mindstore library from the terminal.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between refreshes while items are pending (default: config)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="Show saved content")
    list_parser.add_argument(
        "--pages",
        type=int,
        default=1,
        help="Number of pages to load (default: 1)",
    )
    list_parser.add_argument(
        "--platform",
        choices=FILTER_PLATFORMS,
        default="all",
        help="Only show items from this platform (default: all)",
    )
    list_parser.add_argument(
        "--search",
        default="",
        help="Only show items whose title, author or platform contains this text",
    )

    watch_parser = subparsers.add_parser("watch", help="Poll until nothing is pending")
    watch_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Stop waiting after this many seconds",
    )

    add_parser = subparsers.add_parser("add", help="Save a link")
    add_parser.add_argument("url", help="Link to save")

    delete_parser = subparsers.add_parser("delete", help="Delete saved items")
    delete_parser.add_argument(
        "hashes",
        nargs="+",
        help="Content hashes to delete; ids not in the library are skipped",
    )
    delete_parser.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Skip the confirmation prompt",
    )

    return parser


def main(args: list[str] | None = None) -> int:
    """Run the CLI.

    Args:
        args: Argument list (defaults to sys.argv[1:]).

    Returns:
        Process exit code.
    """
    parser = create_argument_parser()
    parsed_args = parser.parse_args(args)

    try:
        config = get_config()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging("DEBUG" if parsed_args.verbose else config.log_level)

    if parsed_args.command == "list" and parsed_args.pages < 1:
        parser.error("--pages must be at least 1")
    if parsed_args.interval is not None and parsed_args.interval <= 0:
        parser.error("--interval must be positive")

    try:
        return asyncio.run(run_command(parsed_args, config))
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 1


if __name__ == "__main__":
    sys.exit(main())
