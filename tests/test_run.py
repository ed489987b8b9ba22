"""Tests for run.py -- argument handling, JSON output and exit codes."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest

from collection import Collection
from fetcher import FetchError
from models import Episode, SearchResult, Season, Title
from utils import InvalidIdentifierError


def _run(argv, imdb):
    from run import main

    with patch("run.Imdb", return_value=imdb), patch("run.Fetcher"):
        main(argv)


class TestMain:
    def test_prints_title_json(self, capsys):
        imdb = MagicMock()
        imdb.film.return_value = Title(id="tt0111161", title="The Shawshank Redemption", year=1994)

        _run(["tt0111161"], imdb)

        out = json.loads(capsys.readouterr().out)
        assert out["id"] == "tt0111161"
        assert out["year"] == 1994
        imdb.film.assert_called_once_with("tt0111161", cache=False, locale="en", seasons=False)

    def test_passes_options(self, capsys):
        imdb = MagicMock()
        imdb.film.return_value = Title(id="tt0903747")

        _run(["tt0903747", "--seasons", "--cache", "--locale", "it", "--pretty"], imdb)

        imdb.film.assert_called_once_with("tt0903747", cache=True, locale="it", seasons=True)
        assert capsys.readouterr().out.startswith("{\n")

    def test_search(self, capsys):
        imdb = MagicMock()
        imdb.search.return_value = Collection([SearchResult(id="tt0133093", title="The Matrix")])

        _run(["--search", "the matrix"], imdb)

        out = json.loads(capsys.readouterr().out)
        assert out == [{
            "id": "tt0133093", "title": "The Matrix", "image": None, "year": None,
            "type": None, "category": None, "starring": None, "rank": None,
        }]
        imdb.film.assert_not_called()

    def test_single_season(self, capsys):
        imdb = MagicMock()
        season = Season(number=2)
        season.add_episode(Episode(title="Seven Thirty-Seven", season=2, episode=1))
        imdb.episodes.return_value = season

        _run(["tt0903747", "--season", "2"], imdb)

        out = json.loads(capsys.readouterr().out)
        assert out["number"] == 2
        assert out["episodes"]["s2e1"]["title"] == "Seven Thirty-Seven"
        imdb.episodes.assert_called_once_with("tt0903747", 2, locale="en")

    def test_invalid_id_exits_2(self):
        imdb = MagicMock()
        imdb.film.side_effect = InvalidIdentifierError("bad id")
        with pytest.raises(SystemExit) as exc_info:
            _run(["tt12"], imdb)
        assert exc_info.value.code == 2

    def test_fetch_error_exits_1(self):
        imdb = MagicMock()
        imdb.film.side_effect = FetchError("HTTP 503", status_code=503)
        with pytest.raises(SystemExit) as exc_info:
            _run(["tt0111161"], imdb)
        assert exc_info.value.code == 1

    def test_empty_result_warns(self, capsys, caplog):
        imdb = MagicMock()
        imdb.film.return_value = Title()
        _run(["zzzzqqqq"], imdb)
        assert json.loads(capsys.readouterr().out)["id"] is None
        assert "Nothing found" in caplog.text

    def test_target_required(self):
        with pytest.raises(SystemExit) as exc_info:
            _run([], MagicMock())
        assert exc_info.value.code == 2

    def test_season_must_be_positive(self):
        with pytest.raises(SystemExit):
            _run(["tt0903747", "--season", "0"], MagicMock())
