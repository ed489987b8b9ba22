"""Run the field resolvers over a title page and assemble a Title record.

One TitleParser handles one title through a fixed lifecycle:

    EMPTY -> METADATA_CAPTURED -> FIELDS_POPULATED -> [SERIES_EXPANSION] -> DONE

Season expansion happens only for series, only when requested, and only when
the page listed at least one season. It fetches one episode-list page per
season in ascending order; seasons whose page yields no episodes are left out.

Missing fields never abort a run. Fetch errors (fetcher.FetchError) are not
caught here and reach the caller unchanged.
"""

from __future__ import annotations

import logging
from enum import Enum

from dom import Node
from extractors import FIELD_RESOLVERS, get_episodes, get_season_numbers
from fetcher import Fetcher
from metadata import extract_metadata
from models import Season, Title
from utils import validate_id

log = logging.getLogger(__name__)


class ParserState(Enum):
    EMPTY = "empty"
    METADATA_CAPTURED = "metadata_captured"
    FIELDS_POPULATED = "fields_populated"
    SERIES_EXPANSION = "series_expansion"
    DONE = "done"


def title_path(imdb_id: str) -> str:
    return f"/title/{imdb_id}/"


def season_path(imdb_id: str, season: int) -> str:
    return f"/title/{imdb_id}/episodes/?season={season}"


def parse_title_page(page: Node, imdb_id: str | None = None, metadata: dict | None = None) -> Title:
    """Resolve every Title field from an already-fetched title page (no season expansion)."""
    if metadata is None:
        metadata = extract_metadata(page)
    title = Title(id=imdb_id)
    for field_name, resolver in FIELD_RESOLVERS.items():
        setattr(title, field_name, resolver(page, metadata))
    # season numbers short-circuit to [] unless is_series was resolved first
    title.season_numbers = get_season_numbers(page, metadata, title.is_series)
    return title


def parse_season_page(page: Node, number: int) -> Season:
    """Build a Season from an episode-list page."""
    season = Season(number=number)
    for episode in get_episodes(page):
        season.add_episode(episode)
    return season


class TitleParser:
    """Scrape one IMDb title, optionally expanding its seasons."""

    def __init__(
        self,
        imdb_id: str,
        fetcher: Fetcher | None = None,
        seasons: bool = False,
        locale: str | None = None,
    ):
        self.imdb_id = validate_id(imdb_id)
        self.fetcher = fetcher if fetcher is not None else Fetcher()
        self.seasons = seasons
        self.locale = locale
        self.state = ParserState.EMPTY
        self.metadata: dict = {}
        self.title = Title(id=self.imdb_id)

    @classmethod
    def parse(
        cls,
        imdb_id: str,
        fetcher: Fetcher | None = None,
        seasons: bool = False,
        locale: str | None = None,
    ) -> Title:
        """Validate imdb_id, then fetch and parse it. Raises InvalidIdentifierError before any fetch."""
        return cls(imdb_id, fetcher=fetcher, seasons=seasons, locale=locale).run()

    def run(self) -> Title:
        page = self.fetcher.fetch(title_path(self.imdb_id), locale=self.locale)

        self.metadata = extract_metadata(page)
        self.state = ParserState.METADATA_CAPTURED

        self.title = parse_title_page(page, self.imdb_id, self.metadata)
        self.state = ParserState.FIELDS_POPULATED
        log.info(
            "Parsed %s: %r (%s, series=%s)",
            self.imdb_id, self.title.title, self.title.year, self.title.is_series,
        )

        if self.seasons and self.title.is_series and self.title.season_numbers:
            self.state = ParserState.SERIES_EXPANSION
            self.title.seasons = self._expand_seasons(self.title.season_numbers)

        self.state = ParserState.DONE
        return self.title

    def _expand_seasons(self, numbers: list[int]) -> list[Season]:
        seasons = []
        for number in sorted(numbers):
            page = self.fetcher.fetch(season_path(self.imdb_id, number), locale=self.locale)
            season = parse_season_page(page, number)
            if season.episodes.count() == 0:
                log.info("Season %d of %s has no episodes, skipping", number, self.imdb_id)
                continue
            log.debug("Season %d of %s: %d episodes", number, self.imdb_id, season.episodes.count())
            seasons.append(season)
        return seasons

    def properties(self) -> dict:
        """The parsed title as a plain dict."""
        return self.title.to_dict()
