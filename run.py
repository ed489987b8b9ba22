#!/usr/bin/env python3
"""IMDb title scraper.

Usage:
    python run.py tt0111161                   # one title as JSON
    python run.py tt0903747 --seasons         # series with every season's episodes
    python run.py "the shawshank redemption"  # first search hit
    python run.py --search "the matrix"       # search results only
    python run.py tt0903747 --season 2        # one season's episode list
    python run.py tt0111161 --cache --locale it --pretty
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from dotenv import load_dotenv

# Load .env before importing config
load_dotenv()

import config
from fetcher import FetchError, Fetcher
from imdb import Imdb
from utils import InvalidIdentifierError

log = logging.getLogger(__name__)

EXIT_FETCH_ERROR = 1
EXIT_INVALID_ID = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Scrape IMDb title pages into JSON")
    parser.add_argument("target", nargs="?", help="IMDb id (tt1234567) or a keyword to search for")
    parser.add_argument("--search", metavar="KEYWORD", help="Print search results for KEYWORD and exit")
    parser.add_argument("--season", type=int, default=None, help="Print only this season's episodes")
    parser.add_argument("--seasons", action="store_true", help="Expand every season of a series")
    parser.add_argument("--cache", action="store_true", help="Read/write the local title cache")
    parser.add_argument("--locale", default=config.DEFAULT_LOCALE, help="Locale hint (default: %(default)s)")
    parser.add_argument("--pretty", action="store_true", help="Indent JSON output")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def _print_json(data, pretty: bool) -> None:
    print(json.dumps(data, indent=2 if pretty else None, ensure_ascii=False))


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if not args.search and not args.target:
        parser.error("an IMDb id or keyword is required (or use --search)")
    if args.season is not None and args.season < 1:
        parser.error("--season must be 1 or greater")

    with Fetcher() as fetcher:
        imdb = Imdb(fetcher=fetcher)
        try:
            if args.search:
                results = imdb.search(args.search, locale=args.locale)
                log.info("%d results for %r", results.count(), args.search)
                _print_json(results.to_list(), args.pretty)
            elif args.season is not None:
                season = imdb.episodes(args.target, args.season, locale=args.locale)
                log.info("Season %d of %s: %d episodes", args.season, args.target, season.episodes.count())
                _print_json(season.to_dict(), args.pretty)
            else:
                title = imdb.film(
                    args.target, cache=args.cache, locale=args.locale, seasons=args.seasons,
                )
                if title.is_empty():
                    log.warning("Nothing found for %r", args.target)
                _print_json(title.to_dict(), args.pretty)
        except InvalidIdentifierError as e:
            log.error("%s", e)
            sys.exit(EXIT_INVALID_ID)
        except FetchError as e:
            log.error("Fetch failed: %s", e)
            sys.exit(EXIT_FETCH_ERROR)


if __name__ == "__main__":
    main()
