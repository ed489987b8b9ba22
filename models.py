"""Typed records returned by the scraper.

Every record has a closed set of declared fields. Reading or writing anything
else raises UnknownFieldError, and Record.from_dict() rejects unknown keys, so
a typo in a cache payload or a caller fails loudly instead of being silently
carried along.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from typing import Any, ClassVar

from collection import Collection, to_plain


class UnknownFieldError(AttributeError):
    """Raised when reading or writing a field a record does not declare."""


class Record:
    """Base class for all record dataclasses."""

    # field name -> record class used to rebuild nested values in from_dict()
    _nested: ClassVar[dict[str, type[Record]]] = {}

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Record:
        """Build a record from an untyped mapping, validating every key."""
        data = data or {}
        declared = cls.field_names()
        for key in data:
            if key not in declared:
                raise UnknownFieldError(f"{cls.__name__} has no field {key!r}")
        instance = cls()
        for key, value in data.items():
            setattr(instance, key, cls._rebuild(key, value))
        return instance

    @classmethod
    def _rebuild(cls, key: str, value: Any) -> Any:
        record_cls = cls._nested.get(key)
        if record_cls is None or value is None:
            return value
        if isinstance(value, list):
            return [v if isinstance(v, record_cls) else record_cls.from_dict(v) for v in value]
        return value

    def to_dict(self) -> dict[str, Any]:
        """Flatten to a plain ordered dict, recursing into nested records/collections."""
        return {name: to_plain(getattr(self, name)) for name in self.field_names()}

    def to_json(self, **kwargs: Any) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, **kwargs)

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal attribute lookup fails
        raise UnknownFieldError(f"{type(self).__name__} has no field {name!r}")

    def __setattr__(self, name: str, value: Any) -> None:
        if name not in self.__dataclass_fields__:
            raise UnknownFieldError(f"{type(self).__name__} has no field {name!r}")
        object.__setattr__(self, name, value)


# ---------------------------------------------------------------------------
# Leaf records
# ---------------------------------------------------------------------------

@dataclass
class SearchResult(Record):
    """One entry of the search-suggestion endpoint."""

    id: str | None = None
    title: str | None = None
    image: str | None = None
    year: int | None = None
    type: str | None = None      # "feature", "TV series", ...
    category: str | None = None  # "movie", "tvSeries", ...
    starring: str | None = None
    rank: int | None = None


@dataclass
class TechnicalSpec(Record):
    name: str | None = None   # "Runtime"
    value: str | None = None  # "2h 22m"


@dataclass
class CastMember(Record):
    id: str | None = None  # nm0000209
    actor: str | None = None
    character: str | None = None
    link: str | None = None
    image: str | None = None


@dataclass
class SimilarTitle(Record):
    id: str | None = None
    title: str | None = None
    link: str | None = None


@dataclass
class Episode(Record):
    id: str | None = None
    title: str | None = None
    link: str | None = None
    image: str | None = None
    plot: str | None = None
    rating: float | None = None
    rating_votes: int | None = None
    season: int | None = None
    episode: int | None = None
    air_date: str | None = None  # YYYY-MM-DD


# ---------------------------------------------------------------------------
# Composite records
# ---------------------------------------------------------------------------

def episode_key(season: int | None, episode: int | None) -> str:
    """Key under which an episode is stored in Season.episodes: 's8e1'."""
    return f"s{season}e{episode}"


@dataclass
class Season(Record):
    """A season and its episodes, keyed 's{season}e{episode}'."""

    number: int | None = None
    episodes: Collection = field(default_factory=Collection)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Season:
        data = dict(data or {})
        episodes = data.get("episodes")
        if isinstance(episodes, (list, tuple)):
            # A bare list carries no keys: re-key through add_episode
            data.pop("episodes")
            season = super().from_dict(data)
            for ep in episodes:
                season.add_episode(ep if isinstance(ep, Episode) else Episode.from_dict(ep))
            return season
        return super().from_dict(data)

    @classmethod
    def _rebuild(cls, key: str, value: Any) -> Any:
        if key != "episodes" or value is None or isinstance(value, Collection):
            return value
        episodes = Collection()
        for ep_key, ep in value.items():
            episodes.put(ep_key, ep if isinstance(ep, Episode) else Episode.from_dict(ep))
        return episodes

    def add_episode(self, episode: Episode) -> str:
        """Store episode under its composite key and return the key.

        Episodes whose number could not be parsed are keyed by their 1-based
        position in the season instead.
        """
        number = episode.episode if episode.episode is not None else self.episodes.count() + 1
        key = episode_key(self.number, number)
        self.episodes.put(key, episode)
        return key

    def get_episode(self, number: int) -> Episode | None:
        return self.episodes.get(episode_key(self.number, number))


@dataclass
class Title(Record):
    """Everything scraped for one title page."""

    id: str | None = None
    title: str | None = None
    original_title: str | None = None
    year: int | None = None
    length: str | None = None  # "2h 22m"
    rating: float | None = None
    rating_votes: int | None = None
    popularity_score: int | None = None
    meta_score: int | None = None
    genres: list[str] = field(default_factory=list)
    poster_url: str | None = None
    trailer_url: str | None = None
    plot: str | None = None
    is_series: bool = False
    cast: list[CastMember] = field(default_factory=list)
    similars: list[SimilarTitle] = field(default_factory=list)
    season_numbers: list[int] = field(default_factory=list)
    seasons: list[Season] = field(default_factory=list)
    technical_specs: list[TechnicalSpec] = field(default_factory=list)

    def is_empty(self) -> bool:
        """True for the placeholder returned when a lookup found nothing."""
        return self == Title()


Title._nested = {
    "cast": CastMember,
    "similars": SimilarTitle,
    "seasons": Season,
    "technical_specs": TechnicalSpec,
}
