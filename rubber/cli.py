"""Command line entry point: ``rubber <owner> <repo> [pr_number]``."""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Callable, List

from rubber.config import Settings, SettingsError, get_settings
from rubber.logger import get_logger
from rubber.services.review_orchestrator import FatalFetchError, ReviewOrchestrator

logger = get_logger()

PROMPT = "\nEnter PR number to view details (or 'q' to quit): "


def _listing_limit(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid limit: {raw!r}") from exc
    if not 1 <= value <= 100:
        raise argparse.ArgumentTypeError(f"limit must be between 1 and 100, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rubber",
        description="Summarise a GitHub pull request with diff statistics, heuristics and a narrative review",
    )
    parser.add_argument("owner", help="Repository owner")
    parser.add_argument("repo", help="Repository name")
    parser.add_argument(
        "pr_number",
        nargs="?",
        default=None,
        help="Pull request to report on; lists recent pull requests when omitted",
    )
    parser.add_argument("--limit", type=_listing_limit, default=None, help="Number of recent pull requests to list")
    return parser


async def run(
    args: argparse.Namespace,
    orchestrator: ReviewOrchestrator,
    *,
    limit: int = 10,
    input_func: Callable[[str], str] = input,
) -> str:
    """Produce the text to print for ``args``.

    Raises FatalFetchError when the requested pull request (or the recent
    listing) cannot be fetched.
    """

    if args.pr_number is not None:
        try:
            number = int(args.pr_number)
        except ValueError:
            logger.error(f"Invalid PR number: {args.pr_number}")
            return f"Invalid PR number: {args.pr_number}"
        return await orchestrator.generate_report(args.owner, args.repo, number)

    listing = await orchestrator.list_recent(args.owner, args.repo, limit=args.limit or limit)
    if not listing.pull_requests:
        return listing.text

    print(listing.text, end="", flush=True)
    choice = input_func(PROMPT).strip()
    if choice.lower() == "q":
        return ""

    try:
        number = int(choice)
    except ValueError:
        logger.warning("Invalid PR number.")
        return ""

    if listing.find(number) is None:
        logger.warning(f"PR #{number} not found in the current list.")
        return f"PR #{number} not found in the current list."
    return await orchestrator.generate_report(args.owner, args.repo, number)


async def _main(args: argparse.Namespace, settings: Settings) -> str:
    orchestrator = ReviewOrchestrator.from_settings(settings)
    try:
        return await run(args, orchestrator, limit=settings.recent_limit)
    finally:
        await orchestrator.aclose()


def main(argv: List[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
    except SettingsError as exc:
        logger.error(f"Configuration error: {exc}")
        return 1

    try:
        output = asyncio.run(_main(args, settings))
    except FatalFetchError as exc:
        logger.error(f"Error: {exc}")
        return 1
    except (KeyboardInterrupt, EOFError):
        return 1

    if output:
        sys.stdout.write(output if output.endswith("\n") else output + "\n")
        sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
