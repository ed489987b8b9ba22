"""Lookup facade: search IMDb by keyword, or fetch a title by id.

    imdb = Imdb()
    results = imdb.search("the shawshank redemption")   # Collection[SearchResult]
    title = imdb.film("tt0111161", cache=True)          # Title
    title = imdb.film("breaking bad", seasons=True)     # first search hit, with episodes
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote, unquote

import config
from cache import Cache
from collection import Collection
from fetcher import Fetcher
from models import SearchResult, Season, Title
from title_parser import TitleParser, parse_season_page, season_path
from utils import validate_id

log = logging.getLogger(__name__)

DEFAULT_OPTIONS: dict[str, Any] = {
    "cache": False,
    "locale": config.DEFAULT_LOCALE,
    "seasons": False,
}


def parse_search_results(payload: str | bytes | dict | None) -> Collection:
    """Turn a suggestion-endpoint payload into a Collection of SearchResult.

    Invalid JSON, a non-object payload or a missing "d" key give an empty
    Collection rather than an error.
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            log.debug("Search payload is not valid JSON: %s", e)
            return Collection()
    if not isinstance(payload, dict) or not isinstance(payload.get("d"), list):
        return Collection()

    results = Collection()
    for item in payload["d"]:
        if not isinstance(item, dict) or not item.get("id"):
            continue
        image = item.get("i")
        results.push(SearchResult(
            id=item["id"],
            title=item.get("l"),
            image=image.get("imageUrl") if isinstance(image, dict) else None,
            year=item.get("y"),
            type=item.get("q"),
            category=item.get("qid"),
            starring=item.get("s"),
            rank=item.get("rank"),
        ))
    return results


def cache_key(imdb_id: str, locale: str, seasons: bool) -> str:
    return f"{imdb_id}:{locale}:{'seasons' if seasons else 'title'}"


class Imdb:
    """Search and title lookup over a shared fetcher and (optional) cache."""

    def __init__(self, fetcher: Fetcher | None = None, cache: Cache | None = None):
        self.fetcher = fetcher if fetcher is not None else Fetcher()
        self._cache = cache

    @property
    def cache(self) -> Cache:
        if self._cache is None:
            self._cache = Cache()
        return self._cache

    @staticmethod
    def options(**overrides: Any) -> dict[str, Any]:
        """Default options extended with any caller options."""
        return {**DEFAULT_OPTIONS, **{k: v for k, v in overrides.items() if v is not None}}

    def search(self, keyword: str, locale: str | None = None) -> Collection:
        """Search titles, people and companies. Returns Collection[SearchResult]."""
        opts = self.options(locale=locale)
        encoded = quote(unquote(keyword.strip()), safe="")
        if not encoded:
            return Collection()
        url = config.SUGGESTION_URL.format(keyword=encoded)
        return parse_search_results(self.fetcher.raw(url, locale=opts["locale"]))

    def film(
        self,
        id_or_keyword: str,
        cache: bool | None = None,
        locale: str | None = None,
        seasons: bool | None = None,
    ) -> Title:
        """Fetch a title by id ('tt1234567') or by the first hit of a keyword search.

        A keyword with no search results gives an empty Title. A value starting
        with 'tt' that is not a valid id raises InvalidIdentifierError before
        any request is made.
        """
        opts = self.options(cache=cache, locale=locale, seasons=seasons)

        if id_or_keyword.startswith("tt"):
            imdb_id = validate_id(id_or_keyword)
        else:
            results = self.search(id_or_keyword, locale=opts["locale"])
            first = results.first()
            if first is None:
                log.info("No results for %r", id_or_keyword)
                return Title()
            imdb_id = validate_id(first.id)

        key = cache_key(imdb_id, opts["locale"], opts["seasons"])
        if opts["cache"]:
            cached = self.cache.get(key)
            if cached is not None:
                log.info("Cache hit for %s", key)
                return Title.from_dict(cached)

        title = TitleParser.parse(
            imdb_id,
            fetcher=self.fetcher,
            seasons=opts["seasons"],
            locale=opts["locale"],
        )

        if opts["cache"]:
            self.cache.add(key, title.to_dict())
        return title

    def episodes(self, imdb_id: str, season: int, locale: str | None = None) -> Season:
        """Fetch one season's episode list directly."""
        validate_id(imdb_id)
        opts = self.options(locale=locale)
        page = self.fetcher.fetch(season_path(imdb_id, season), locale=opts["locale"])
        return parse_season_page(page, season)
