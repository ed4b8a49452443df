"""
Feedback Runner - terminal front end for page feedback.

Provides a CLI for:
- Listing the feedback left on a page
- Posting a comment, optionally under a display name
- An interactive mode for leaving several comments in a row

Usage:
    python -m pagefeedback.feedback.runner --page day1 --list
    python -m pagefeedback.feedback.runner --page day1 --post "lovely" --name Al
    python -m pagefeedback.feedback.runner --path /days/day1.html --interactive
"""

import argparse
import logging
import platform
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime
from pathlib import Path
from typing import Optional

from pagefeedback import config
from pagefeedback.errors import ValidationError
from pagefeedback.feedback.session import FeedbackSession, Submission, page_from_path
from pagefeedback.feedback.storage import Entry

logger = logging.getLogger(__name__)

LOCAL_ONLY_NOTE = "feedback is saved locally for now - shared comments coming soon"
CLI_AGENT = f"pagefeedback-cli/{platform.python_version()} ({platform.system()})"


def format_time(entry: Entry) -> str:
    """Short local time like 'Jan 5 3:04 PM', or '' if created_at is unusable."""
    ts = entry.timestamp()
    if ts is None:
        return ""
    t = datetime.fromtimestamp(ts)
    return f"{t:%b} {t.day} {t.hour % 12 or 12}:{t:%M} {t:%p}"


def render_entries(entries: list[Entry]) -> str:
    """Render a page's entries as plain text."""
    if not entries:
        return "no feedback yet - be the first"

    blocks = []
    for e in entries:
        header = f"{e.name or config.ANONYMOUS_NAME}  {format_time(e)}".rstrip()
        blocks.append(f"{header}\n  {e.message}")
    return "\n\n".join(blocks)


class FeedbackRunner:
    """
    Interactive feedback front end for a single page.

    Plays the part of the page widget: loads and reconciles the page on
    start, then lists and posts entries through the session.
    """

    def __init__(self, page: str, session: Optional[FeedbackSession] = None):
        self.page = page
        self.session = session or FeedbackSession.from_config(source_agent=CLI_AGENT)

    def load(self) -> list[Entry]:
        """Reconcile the page and return its entries."""
        return self.session.init(self.page)

    def post(self, message: str, name: Optional[str] = None) -> Optional[Submission]:
        """Post a comment; returns None if the message was rejected."""
        name = name if name is not None else self.session.display_name()
        try:
            result = self.session.submit(self.page, name, message)
        except ValidationError as e:
            print(f"Not posted: {e}")
            return None

        for warning in result.warnings:
            print(f"Warning: {warning}")
        return result

    def show(self):
        print(f"\nfeedback for {self.page} ({self.session.count(self.page)})")
        print("-" * 40)
        print(render_entries(self.session.list(self.page)))
        if not self.session.remote_enabled:
            print(f"\n{LOCAL_ONLY_NOTE}")

    def interactive(self):
        """Run interactive feedback mode."""
        self.load()
        self.show()

        print("\nCommands:")
        print("  Type a message to post it")
        print("  'list' - Show this page's feedback")
        print("  'name <your name>' - Change your display name")
        print("  'quit' - Exit\n")

        name = self.session.display_name()
        if name:
            print(f"Posting as {name}")

        while True:
            try:
                user_input = input("Message: ").strip()
            except (KeyboardInterrupt, EOFError):
                print("\nGoodbye!")
                break

            if not user_input:
                continue

            if user_input.lower() in ("quit", "exit", "q"):
                print("Goodbye!")
                break

            if user_input.lower() == "list":
                self.show()
                continue

            if user_input.lower().startswith("name "):
                new_name = user_input[5:].strip()
                if new_name and self.session.remember_name(new_name):
                    print(f"Posting as {new_name}")
                continue

            if self.post(user_input):
                print("Sent.")

    def close(self):
        self.session.close()


def main(argv: Optional[list[str]] = None):
    parser = argparse.ArgumentParser(description="Page Feedback")
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--page", type=str, help="Page key, e.g. day1")
    target.add_argument("--path", type=str, help="URL path to derive the page key from")
    parser.add_argument("--list", action="store_true", help="List feedback for the page")
    parser.add_argument("--post", type=str, help="Post a message to the page")
    parser.add_argument("--name", type=str, help="Display name for --post")
    parser.add_argument("--count", action="store_true", help="Show the number of entries")
    parser.add_argument("--pages", action="store_true", help="List pages with local feedback")
    parser.add_argument("--interactive", "-i", action="store_true", help="Interactive mode")
    parser.add_argument("--data-dir", type=Path, help="Directory for local feedback data")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug or config.DEBUG else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    for problem in config.validate_config():
        logger.warning(problem)

    page = args.page or page_from_path(args.path)
    session = FeedbackSession.from_config(data_dir=args.data_dir, source_agent=CLI_AGENT)
    runner = FeedbackRunner(page, session=session)

    try:
        if args.pages:
            for p in session.store.pages():
                print(f"{p}: {session.count(p)}")
        elif args.interactive:
            runner.interactive()
        elif args.post:
            runner.load()
            result = runner.post(args.post, args.name)
            if result is None:
                return 1
            try:
                shared = result.push.result(timeout=config.REMOTE_TIMEOUT + 5)
            except FutureTimeoutError:
                logger.warning(f"Remote did not confirm entry {result.entry.id} in time")
                shared = False
            print(f"Posted {result.entry.id} to {page}" + ("" if shared else " (local only)"))
        elif args.count:
            runner.load()
            print(session.count(page))
        elif args.list:
            runner.load()
            runner.show()
        else:
            parser.print_help()
    finally:
        runner.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
