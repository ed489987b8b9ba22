"""Tests for models.py -- closed-field records and their dict round trips."""

import json

import pytest

from collection import Collection
from models import (
    CastMember,
    Episode,
    Season,
    SearchResult,
    SimilarTitle,
    TechnicalSpec,
    Title,
    UnknownFieldError,
    episode_key,
)


def _full_title() -> Title:
    season = Season(number=1)
    season.add_episode(Episode(id="tt0959621", title="Pilot", season=1, episode=1,
                               rating=9.0, rating_votes=42000, air_date="2008-01-20"))
    season.add_episode(Episode(id="tt1054724", title="Cat's in the Bag...", season=1, episode=2))
    return Title(
        id="tt0903747",
        title="Breaking Bad",
        original_title="Breaking Bad",
        year=2008,
        length="49m",
        rating=9.5,
        rating_votes=2_100_000,
        genres=["Crime", "Drama"],
        is_series=True,
        cast=[CastMember(id="nm0186505", actor="Bryan Cranston", character="Walter White")],
        similars=[SimilarTitle(id="tt1856010", title="House of Cards")],
        season_numbers=[1],
        seasons=[season],
        technical_specs=[TechnicalSpec(name="Runtime", value="49m")],
    )


class TestRecordFields:
    def test_unknown_attribute_read(self):
        with pytest.raises(UnknownFieldError):
            _ = Title().box_office

    def test_unknown_attribute_write(self):
        title = Title()
        with pytest.raises(UnknownFieldError):
            title.box_office = 100

    def test_unknown_field_error_is_attribute_error(self):
        assert not hasattr(Episode(), "director")

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(UnknownFieldError):
            SearchResult.from_dict({"id": "tt0111161", "bogus": 1})

    def test_field_names_in_declaration_order(self):
        assert TechnicalSpec.field_names() == ("name", "value")

    def test_defaults(self):
        title = Title()
        assert title.genres == []
        assert title.is_series is False
        assert title.is_empty()

    def test_mutable_defaults_not_shared(self):
        a, b = Title(), Title()
        a.genres.append("Drama")
        assert b.genres == []


class TestRoundTrip:
    @pytest.mark.parametrize("record", [
        SearchResult(id="tt0111161", title="The Shawshank Redemption", year=1994, rank=71),
        TechnicalSpec(name="Sound mix", value="Dolby Digital"),
        CastMember(id="nm0000209", actor="Tim Robbins", character="Andy Dufresne"),
        SimilarTitle(id="tt0068646", title="The Godfather"),
        Episode(id="tt0959621", title="Pilot", season=1, episode=1),
    ])
    def test_leaf_records(self, record):
        assert type(record).from_dict(record.to_dict()) == record

    def test_title_with_nested_records(self):
        title = _full_title()
        rebuilt = Title.from_dict(title.to_dict())
        assert rebuilt == title
        assert isinstance(rebuilt.cast[0], CastMember)
        assert isinstance(rebuilt.seasons[0], Season)
        assert isinstance(rebuilt.seasons[0].episodes, Collection)
        assert rebuilt.seasons[0].get_episode(2).title == "Cat's in the Bag..."

    def test_title_survives_json(self):
        title = _full_title()
        rebuilt = Title.from_dict(json.loads(title.to_json()))
        assert rebuilt == title

    def test_to_dict_is_plain(self):
        plain = _full_title().to_dict()
        assert plain["cast"][0]["actor"] == "Bryan Cranston"
        assert plain["seasons"][0]["episodes"]["s1e1"]["title"] == "Pilot"

    def test_from_dict_none(self):
        assert Title.from_dict(None) == Title()


class TestSeason:
    def test_episode_key_format(self):
        assert episode_key(8, 1) == "s8e1"

    def test_add_episode_keys_by_number(self):
        season = Season(number=2)
        key = season.add_episode(Episode(title="Grilled", season=2, episode=2))
        assert key == "s2e2"
        assert season.get_episode(2).title == "Grilled"

    def test_add_episode_without_number_uses_position(self):
        season = Season(number=3)
        season.add_episode(Episode(title="First"))
        key = season.add_episode(Episode(title="Second"))
        assert key == "s3e2"
        assert season.episodes.keys() == ["s3e1", "s3e2"]

    def test_rebuild_from_episode_list(self):
        season = Season.from_dict({
            "number": 1,
            "episodes": [{"title": "Pilot", "season": 1, "episode": 1}],
        })
        assert season.episodes.keys() == ["s1e1"]
        assert isinstance(season.get_episode(1), Episode)

    def test_rebuild_unnumbered_episodes_from_list(self):
        season = Season.from_dict({
            "number": 3,
            "episodes": [{"title": "First"}, {"title": "Second"}],
        })
        assert season.episodes.keys() == ["s3e1", "s3e2"]
        assert season.get_episode(1).title == "First"
        assert season.get_episode(2).title == "Second"

    def test_rebuild_list_keys_use_season_number(self):
        season = Season.from_dict({
            "episodes": [{"title": "Pilot", "season": 9, "episode": 1}],
            "number": 1,
        })
        assert season.episodes.keys() == ["s1e1"]

    def test_rebuild_list_rejects_unknown_keys(self):
        with pytest.raises(UnknownFieldError):
            Season.from_dict({"number": 1, "episodes": [], "bogus": True})
