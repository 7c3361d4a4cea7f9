"""
flashdeck: Catalog Sync
-----------------------

Command-line entry point: loads the active languages and their decks
through the cache, optionally forcing a catalog refresh, and prints each
deck with its stored progress.
"""

import argparse
import asyncio
import logging
import sys

from flashdeck.config import Config
from flashdeck.exceptions import ConfigurationError
from flashdeck.services import create_services
from flashdeck.utils import format_remaining, setup_logger

logger = logging.getLogger("flashdeck.sync")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync the flashcard catalog and show progress.")
    parser.add_argument("--refresh", action="store_true", help="pull-to-refresh the whole catalog")
    parser.add_argument("--force", action="store_true", help="ignore the refresh throttle")
    parser.add_argument("--language", help="only show this language")
    return parser.parse_args(argv)


async def main(args: argparse.Namespace) -> bool:
    """Main entry point."""
    config = Config()
    setup_logger("flashdeck", config.LOG_LEVEL, config.LOG_FILE or None)

    services = create_services(config)
    services.cache.on_error(lambda e: print(f"[ERROR] {e}"))

    async with services:
        if args.refresh:
            outcome = await services.cache.refresh_all(force_refresh=args.force)
            if not outcome.performed:
                print(f"Next refresh available in {format_remaining(outcome.remaining)}")
            elif outcome.failed:
                print(f"[!] Could not refresh: {', '.join(outcome.failed)}")

        languages = await services.cache.get_languages()
        if args.language:
            languages = [language for language in languages if language.name == args.language]
        if not languages:
            print("No active languages available.")
            return False

        for language in languages:
            decks = await services.cache.get_decks_for_language(language)
            print(f"\n{language.name} ({len(decks)} decks)")
            for deck in decks:
                progress = services.progress.get_progress(deck.storage_id)
                status = "done" if progress.completed else f"{progress.coverage(deck.card_count):.0f}%"
                print(f"  {deck.name:<40} {deck.card_count:>4} cards  {status:>5}  "
                      f"accuracy {progress.accuracy:.0f}%")
    return True


if __name__ == "__main__":
    try:
        success = asyncio.run(main(parse_args()))
        sys.exit(0 if success else 1)
    except ConfigurationError as e:
        print(f"[ERROR] {e}")
        sys.exit(2)
    except KeyboardInterrupt:
        print("\n[!] Aborted by user.")
        sys.exit(1)
