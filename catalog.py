#!/usr/bin/env python3
"""
Game Catalog - browse video games and their review ratings.
Lists the catalog with search, tag filters, sorting and paging, and shows a
game's rating breakdown.
"""

import json
import logging
import os
import argparse
from typing import Dict, List, Optional

from colorama import init, Fore, Style
from dotenv import load_dotenv

import database
from app.models import MAX_RATING, MIN_RATING
from app.repositories import GameRepository, ReviewRepository
from app.services import (Direction, ListingFilter, ListingQueryEngine,
                          RatingAggregator, ReviewService, SortKey, Sorting)

# Initialize colorama for cross-platform colored terminal output
init(autoreset=True)

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def setup_logging(level: str = 'WARNING') -> logging.Logger:
    """Configure the root catalog logger.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to WARNING so normal use is quiet.

    Returns:
        Configured logger instance.
    """
    numeric = getattr(logging, level.upper(), logging.WARNING)
    # services log under their module names (app.services.*)
    for name in ('catalog', 'app'):
        named = logging.getLogger(name)
        if not named.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter('[%(levelname)s] %(name)s: %(message)s'))
            named.addHandler(handler)
        named.setLevel(numeric)
    return logging.getLogger('catalog')


# Module-level logger used throughout catalog.py
logger = setup_logging()


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

DEFAULT_CONFIG: Dict = {
    'database_url': database.DATABASE_URL,
    'log_level': 'WARNING',
    'default_page_size': 10,
    'max_page_size': 100,
    'pagination_window': 3,
}


def load_config(config_path: str = 'config.json') -> Dict:
    """Load configuration from a JSON file with environment variable support.

    Missing keys (or a missing file) fall back to :data:`DEFAULT_CONFIG`.
    Environment variables take precedence over config file values:

    - DATABASE_URL overrides database_url
    - CATALOG_LOG_LEVEL overrides log_level
    - CATALOG_PAGE_SIZE overrides default_page_size
    """
    load_dotenv()
    config = dict(DEFAULT_CONFIG)

    if os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                config.update(json.load(f))
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Could not load config %s: %s", config_path, e)
    else:
        logger.warning("Config file '%s' not found, using defaults", config_path)

    if os.getenv('DATABASE_URL'):
        config['database_url'] = os.getenv('DATABASE_URL')
    if os.getenv('CATALOG_LOG_LEVEL'):
        config['log_level'] = os.getenv('CATALOG_LOG_LEVEL')
    if os.getenv('CATALOG_PAGE_SIZE'):
        try:
            config['default_page_size'] = int(os.getenv('CATALOG_PAGE_SIZE'))
        except ValueError:
            logger.warning("Ignoring non-numeric CATALOG_PAGE_SIZE=%r",
                           os.getenv('CATALOG_PAGE_SIZE'))

    return config


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class Catalog:
    """Main catalog application.

    Owns one database session and the repositories and services bound to
    it.  Use as a context manager, or call :meth:`close` when done.
    """

    def __init__(self, config: Optional[Dict] = None, session=None):
        self._log = logging.getLogger('catalog.app')
        self.config = config if config is not None else load_config()

        # Re-apply log level from config (allows "log_level": "DEBUG" in config.json)
        setup_logging(self.config.get('log_level', 'WARNING'))

        self.default_page_size = self.config.get('default_page_size', DEFAULT_CONFIG['default_page_size'])

        if session is None:
            database.configure_engine(self.config.get('database_url'))
            database.init_db()
            session = database.SessionLocal()
            self._owns_session = True
        else:
            self._owns_session = False
        self.session = session

        self.games = GameRepository(session)
        self.reviews = ReviewRepository(session)
        self.aggregator = RatingAggregator()
        self.review_service = ReviewService(self.reviews, self.aggregator)
        self.listing = ListingQueryEngine(
            self.games,
            max_page_size=self.config.get('max_page_size'),
            window=self.config.get('pagination_window', DEFAULT_CONFIG['pagination_window']),
        )

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    # ------------------------------------------------------------------
    # Console output
    # ------------------------------------------------------------------

    def display_page(self, page) -> None:
        """Print a listing page with its summary and pagination links."""
        if not page.items:
            print(f"{Fore.YELLOW}No games match these filters.")
            return

        print(f"\n{Fore.CYAN}{Style.BRIGHT}{page.summary()}")
        print(f"{Fore.CYAN}{'-' * 60}")
        for game in page.items:
            average = game.average_rating if game.average_rating is not None else '-'
            tags = ', '.join(tag.name for tag in game.tags)
            print(f"{Fore.GREEN}{game.title:<30}{Style.RESET_ALL} "
                  f"{Fore.YELLOW}{average}/{MAX_RATING}{Style.RESET_ALL}  {tags}")

        if page.pagination:
            labels: List[str] = []
            for link in page.pagination:
                if link.active:
                    labels.append(f"{Style.BRIGHT}[{link.label}]{Style.RESET_ALL}")
                else:
                    labels.append(link.label)
            print(f"\n{' | '.join(labels)}")

    def display_game(self, game) -> None:
        """Print a game's average rating and rating distribution."""
        print(f"\n{Fore.CYAN}{Style.BRIGHT}{game.title}")
        if game.average_rating is None:
            print(f"{Fore.YELLOW}No reviews yet.")
            return

        distribution = game.rating_distribution
        print(f"{Fore.GREEN}Average rating: {game.average_rating}/{MAX_RATING} "
              f"({distribution.total} reviews)")
        widest = max(distribution.count(v) for v in range(MIN_RATING, MAX_RATING + 1))
        for value in range(MAX_RATING, MIN_RATING - 1, -1):
            count = distribution.count(value)
            bar_len = round(20 * count / widest) if widest else 0
            print(f"  {value}★ {Fore.YELLOW}{'█' * bar_len:<20}{Style.RESET_ALL} {count}")


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description='Game Catalog - browse games and review ratings',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python3 catalog.py                          # First page of the catalog
  python3 catalog.py --page 2 --limit 25      # Second page, 25 games per page
  python3 catalog.py --sort title             # Titles Z to A
  python3 catalog.py --sort title --direction asc
  python3 catalog.py --search "Game 4" --tag 1 --tag 2
  python3 catalog.py --show game-49           # Rating breakdown of one game
        """
    )

    parser.add_argument(
        '--config', '-c',
        default='config.json',
        help='Path to config file (default: config.json)'
    )
    parser.add_argument('--page', '-p', type=int, default=1, help='Page number (default: 1)')
    parser.add_argument('--limit', '-l', type=int, help='Games per page (default from config)')
    parser.add_argument('--sort', choices=['default', 'title'], default='default',
                        help='Sort key (default: catalog order)')
    parser.add_argument('--direction', choices=['asc', 'desc'],
                        help='Sort direction (title defaults to desc)')
    parser.add_argument('--search', '-s', type=str, help='Only titles containing this text')
    parser.add_argument('--tag', '-t', type=int, action='append', default=[], metavar='ID',
                        help='Only games carrying this tag id (repeatable, all must match)')
    parser.add_argument('--show', type=str, metavar='SLUG',
                        help='Show the rating breakdown of one game and exit')

    args = parser.parse_args()

    config = load_config(args.config)
    with Catalog(config) as catalog:
        if args.show:
            game = catalog.games.find_by_slug(args.show)
            if game is None:
                print(f"{Fore.RED}No game with slug '{args.show}'.")
                return 1
            catalog.display_game(game)
            return 0

        sorting = Sorting(
            key=SortKey.TITLE if args.sort == 'title' else SortKey.DEFAULT,
            direction={'asc': Direction.ASCENDING,
                       'desc': Direction.DESCENDING}.get(args.direction),
        )
        try:
            page = catalog.listing.list(
                ListingFilter(search=args.search, tags=set(args.tag)),
                sorting,
                page=args.page,
                page_size=args.limit or catalog.default_page_size,
            )
        except ValueError as e:
            print(f"{Fore.RED}Error: {e}")
            return 2
        catalog.display_page(page)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
