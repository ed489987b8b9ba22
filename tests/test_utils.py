"""Tests for utils.py -- text/count/date normalizers, URL and id helpers."""

import httpx
import pytest

import config
from utils import (
    InvalidIdentifierError,
    RateLimiter,
    absolutize_url,
    clean,
    get_http_client,
    parse_count,
    parse_date,
    validate_id,
)


class TestClean:
    def test_decodes_entities(self):
        assert clean("Tom &amp; Jerry") == "Tom & Jerry"

    def test_strips_tags(self):
        assert clean("<b>The</b> <i>Matrix</i>") == "The Matrix"

    def test_nbsp_becomes_space(self):
        assert clean("2h\xa022m") == "2h 22m"
        assert clean("2h&nbsp;22m") == "2h 22m"

    def test_collapses_whitespace(self):
        assert clean("  The \n\t Shawshank   Redemption  ") == "The Shawshank Redemption"

    def test_double_escaped_markup(self):
        assert clean("&amp;lt;b&amp;gt;Bold&amp;lt;/b&amp;gt;") == "Bold"

    def test_empty_and_none(self):
        assert clean("") == ""
        assert clean(None) == ""

    @pytest.mark.parametrize("text", [
        "Tom &amp; Jerry",
        "&amp;lt;b&amp;gt;x",
        "a &lt;script&gt; tag",
        "  spaced\xa0\xa0out  ",
        "<p>para</p>&nbsp;<br/>next",
    ])
    def test_idempotent(self, text):
        once = clean(text)
        assert clean(once) == once


class TestParseCount:
    def test_millions(self):
        assert parse_count("1.5M") == 1_500_000

    def test_thousands(self):
        assert parse_count("1.2K") == 1200

    def test_lowercase_suffix(self):
        assert parse_count("456k") == 456_000

    def test_mln_with_comma_decimal(self):
        assert parse_count("1,2 mln") == 1_200_000

    def test_no_suffix_truncates(self):
        assert parse_count("1.8") == 1

    def test_parenthesized(self):
        assert parse_count("(34K)") == 34_000

    def test_not_a_number(self):
        assert parse_count("not a number") is None

    def test_empty(self):
        assert parse_count("") is None
        assert parse_count(None) is None


class TestParseDate:
    def test_english_with_weekday(self):
        assert parse_date("Mon, Sep 22, 2014") == "2014-09-22"

    def test_english_full_month(self):
        assert parse_date("September 22, 2014") == "2014-09-22"

    def test_italian(self):
        assert parse_date("lun, 22 set 2014") == "2014-09-22"

    def test_french_abbreviated_month(self):
        assert parse_date("lun., 22 sept. 2014") == "2014-09-22"
        assert parse_date("22 sept. 2014") == "2014-09-22"

    def test_portuguese(self):
        assert parse_date("seg., 22 de set. de 2014") == "2014-09-22"
        assert parse_date("22 de setembro de 2014") == "2014-09-22"

    def test_day_month_year(self):
        assert parse_date("22 Sep 2014") == "2014-09-22"

    def test_surrounding_whitespace_and_nbsp(self):
        assert parse_date("  Mon,\xa0Sep 22, 2014 ") == "2014-09-22"

    def test_invalid_calendar_date(self):
        assert parse_date("Feb 30, 2014") is None

    def test_unknown_month(self):
        assert parse_date("Foo 22, 2014") is None

    def test_garbage(self):
        assert parse_date("coming soon") is None
        assert parse_date("") is None
        assert parse_date(None) is None


class TestAbsolutizeUrl:
    def test_relative_path(self):
        assert absolutize_url("/title/tt1234567/") == f"{config.BASE_URL}/title/tt1234567/"

    def test_strips_query(self):
        assert absolutize_url("https://x/y?z=1") == "https://x/y"

    def test_relative_with_query(self):
        assert absolutize_url("/name/nm0000209/?ref_=tt_cl_t_1") == f"{config.BASE_URL}/name/nm0000209/"

    def test_absolute_unchanged(self):
        url = "https://m.media-amazon.com/images/M/poster.jpg"
        assert absolutize_url(url) == url


class TestValidateId:
    @pytest.mark.parametrize("imdb_id", ["tt0111161", "tt12345678"])
    def test_valid(self, imdb_id):
        assert validate_id(imdb_id) == imdb_id

    @pytest.mark.parametrize("imdb_id", ["", "tt123", "nm0000209", "0111161", "tt0111161x", "tt123456789"])
    def test_invalid(self, imdb_id):
        with pytest.raises(InvalidIdentifierError):
            validate_id(imdb_id)

    def test_non_string(self):
        with pytest.raises(InvalidIdentifierError):
            validate_id(111161)

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            validate_id("bogus")


class TestHttpClient:
    def test_follows_redirects_with_user_agent(self):
        client = get_http_client(retries=0, timeout=5.0)
        try:
            assert isinstance(client, httpx.Client)
            assert client.follow_redirects is True
            assert client.max_redirects == config.HTTP_MAX_REDIRECTS
            assert client.headers["User-Agent"] == config.get_user_agent()
        finally:
            client.close()


class TestRateLimiter:
    def test_zero_delay_never_sleeps(self, monkeypatch):
        calls = []
        monkeypatch.setattr("utils.time.sleep", lambda s: calls.append(s))
        limiter = RateLimiter(min_delay=0)
        limiter.wait("www.imdb.com")
        limiter.wait("www.imdb.com")
        assert calls == []

    def test_sleeps_between_requests_to_same_domain(self, monkeypatch):
        calls = []
        monkeypatch.setattr("utils.time.sleep", lambda s: calls.append(s))
        limiter = RateLimiter(min_delay=10.0)
        limiter.wait("www.imdb.com")
        limiter.wait("www.imdb.com")
        limiter.wait("v3.sg.media-imdb.com")
        assert len(calls) == 1
        assert 0 < calls[0] <= 10.0
