"""Field resolvers for IMDb title and episode-list pages.

Each resolver takes the parsed page and the page's JSON-LD metadata and
returns one field value. The markup is tried first; when the container or the
element is missing (or yields nothing usable) the resolver falls back to a
dot path in the metadata document. A field that cannot be found resolves to
None or an empty list, never to an exception.

Main entry points:
    FIELD_RESOLVERS            ordered {title_field: resolver}
    get_season_numbers(page, metadata, is_series)
    get_episodes(page) -> list[Episode]
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Any

from dom import Node
from metadata import resolve
from models import CastMember, Episode, SimilarTitle, TechnicalSpec
from utils import absolutize_url, clean, parse_count, parse_date

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Container selectors
# ---------------------------------------------------------------------------
_HERO_SELECTOR = 'section[data-testid="hero-parent"]'
_CAST_SELECTOR = 'section[data-testid="title-cast"]'
_INFO_LIST_SELECTOR = 'ul.ipc-inline-list[role="presentation"]'
_SUBNAV_TESTID = "hero-subnav-bar-topic-links"
_RATING_SCORE_SELECTOR = 'div[data-testid="hero-rating-bar__aggregate-rating__score"]'
_TITLE_SELECTOR = 'h1[data-testid="hero__pageTitle"]'

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------
_SERIES_RE = re.compile(r"TV Series|TV Mini Series|Serie TV|Série TV|Miniserie", re.IGNORECASE)
_SERIES_TYPES = ("TVSeries", "TVSeason")
_YEAR_RE = re.compile(r"([0-9]{4})(\s*[–\-]\s*([0-9]{4}))?")
_DURATION_RE = re.compile(r"\b[0-9]+h\s*[0-9]+m|\b[0-9]+[hm]\b", re.IGNORECASE)
_ISO_DURATION_RE = re.compile(r"^PT(?:([0-9]+)H)?(?:([0-9]+)M)?", re.IGNORECASE)
_ORIGINAL_TITLE_RE = re.compile(
    r"^(Original title|Titolo originale|Titre original|Título original|Originaltitel)\s*:?\s*",
    re.IGNORECASE,
)
_NAME_ID_RE = re.compile(r"/name/(nm[0-9]{7,8})/")
_TITLE_ID_RE = re.compile(r"/title/(tt[0-9]{7,8})/")
_SEASON_HREF_RE = re.compile(r"/title/tt[0-9]+/episodes/?\?season=([0-9]+)")
# "S8.E1 ∙ The Locomotion Interruption"
_EPISODE_CODE_RE = re.compile(r"^\s*S([0-9]+)[\s.\-]*E([0-9]+)\s*(?:[∙·|:\-–—]\s*)?", re.IGNORECASE)


# ===========================================================================
#  Helpers
# ===========================================================================


def hero_container(page: Node) -> Node | None:
    return page.find_one(_HERO_SELECTOR)


def cast_container(page: Node) -> Node | None:
    return page.find_one(_CAST_SELECTOR)


def info_container(page: Node) -> Node | None:
    """The hero's inline info list ("TV Series · 2008–2013 · TV-MA · 49m").

    The hero holds several inline lists; the topic sub-navigation one is skipped.
    """
    hero = hero_container(page)
    if hero is None:
        return None
    for container in hero.find(_INFO_LIST_SELECTOR):
        if container.attribute("data-testid") != _SUBNAV_TESTID:
            return container
    return None


def _info_items(page: Node) -> list[str]:
    container = info_container(page)
    if container is None:
        return []
    return [item.text() for item in container.find("li")]


def _match_id(pattern: re.Pattern, link: str | None) -> str | None:
    if not link:
        return None
    m = pattern.search(link)
    return m.group(1) if m else None


def _to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(str(value).replace(",", "."))
    except ValueError:
        return None


def _to_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    digits = re.sub(r"[^0-9]", "", str(value))
    return int(digits) if digits else None


def _meta_text(metadata: dict, path: str) -> str | None:
    value = resolve(path, metadata)
    if isinstance(value, str):
        return clean(value) or None
    return None


def _fallback(field_name: str, path: str) -> None:
    log.debug("%s: markup not found, falling back to metadata %r", field_name, path)


# ===========================================================================
#  Title page resolvers
# ===========================================================================


def is_series(page: Node, metadata: dict) -> bool:
    for text in _info_items(page):
        if _SERIES_RE.search(text):
            return True
    return resolve("@type", metadata) in _SERIES_TYPES


def get_title(page: Node, metadata: dict) -> str | None:
    hero = hero_container(page)
    if hero is not None:
        title = hero.find_one(f"{_TITLE_SELECTOR} span")
        if title is not None and title.text():
            return title.text()
    _fallback("title", "name")
    return _meta_text(metadata, "name")


def get_original_title(page: Node, metadata: dict) -> str | None:
    """Title in the original language, shown under the h1 as 'Original title: ...'.

    Falls back to the display title when the page shows no original title.
    """
    hero = hero_container(page)
    if hero is not None:
        heading = hero.find_one(_TITLE_SELECTOR)
        parent = heading.parent() if heading is not None else None
        if parent is not None:
            for div in parent.find("div"):
                text = div.text()
                if _ORIGINAL_TITLE_RE.match(text):
                    original = clean(_ORIGINAL_TITLE_RE.sub("", text, count=1))
                    if original:
                        return original
    return get_title(page, metadata)


def get_year(page: Node, metadata: dict) -> int | None:
    for text in _info_items(page):
        m = _YEAR_RE.search(text)
        if m:
            return int(m.group(1))

    _fallback("year", "datePublished")
    published = _meta_text(metadata, "datePublished")
    if published and published[:4].isdigit():
        return int(published[:4])
    return None


def _format_iso_duration(duration: str) -> str | None:
    """'PT2H22M' -> '2h 22m', 'PT45M' -> '45m'."""
    m = _ISO_DURATION_RE.match(duration.strip())
    if not m or not (m.group(1) or m.group(2)):
        return None
    parts = []
    if m.group(1):
        parts.append(f"{int(m.group(1))}h")
    if m.group(2):
        parts.append(f"{int(m.group(2))}m")
    return " ".join(parts)


def get_length(page: Node, metadata: dict) -> str | None:
    for text in _info_items(page):
        m = _DURATION_RE.search(text)
        if m:
            return m.group(0)

    _fallback("length", "duration")
    duration = _meta_text(metadata, "duration")
    if duration:
        return _format_iso_duration(duration)
    return None


def get_rating(page: Node, metadata: dict) -> float | None:
    hero = hero_container(page)
    if hero is not None:
        score = hero.find_one(f"{_RATING_SCORE_SELECTOR} span")
        if score is not None:
            rating = _to_float(score.text())
            if rating is not None:
                return rating

    _fallback("rating", "aggregateRating.ratingValue")
    return _to_float(resolve("aggregateRating.ratingValue", metadata))


def get_rating_votes(page: Node, metadata: dict) -> int | None:
    """Vote count shown next to the score ('2.9M'), expanded to an integer."""
    hero = hero_container(page)
    if hero is not None:
        score = hero.find_one(_RATING_SCORE_SELECTOR)
        parent = score.parent() if score is not None else None
        if parent is not None:
            divs = [
                div for div in parent.find("div")
                if div.attribute("data-testid") != "hero-rating-bar__aggregate-rating__score"
            ]
            if divs:
                votes = parse_count(divs[-1].text())
                if votes is not None:
                    return votes

    _fallback("rating_votes", "aggregateRating.ratingCount")
    return _to_int(resolve("aggregateRating.ratingCount", metadata))


def get_popularity_score(page: Node, metadata: dict) -> int | None:
    hero = hero_container(page)
    if hero is not None:
        score = hero.find_one('div[data-testid="hero-rating-bar__popularity__score"]')
        if score is not None:
            return _to_int(score.text())
    return None


def get_meta_score(page: Node, metadata: dict) -> int | None:
    """Metascore: the number right before the 'Metascore' label in the review list,
    else the standalone score box."""
    hero = hero_container(page)
    if hero is None:
        return None
    reviews = hero.find_one('ul[data-testid="reviewContent-all-reviews"]')
    if reviews is not None:
        for item in reviews.find("li"):
            spans = item.find("span.three-Elements span")
            for i, span in enumerate(spans):
                if span.text().lower() == "metascore" and i > 0:
                    return _to_int(spans[i - 1].text())
    box = hero.find_one("span.metacritic-score-box")
    return _to_int(box.text()) if box is not None else None


def get_genres(page: Node, metadata: dict) -> list[str]:
    hero = hero_container(page)
    if hero is not None:
        interests = hero.find_one('div[data-testid="interests"]') or hero.find_one(
            'div[data-testid="genres"]'
        )
        if interests is not None:
            genres = [g.text() for g in interests.find("a.ipc-chip span")]
            genres = [g for g in genres if g]
            if genres:
                return genres

    _fallback("genres", "genre")
    genre = resolve("genre", metadata)
    if isinstance(genre, str):
        return [clean(genre)] if clean(genre) else []
    if isinstance(genre, list):
        return [clean(g) for g in genre if isinstance(g, str) and clean(g)]
    return []


def get_poster_url(page: Node, metadata: dict) -> str | None:
    hero = hero_container(page)
    if hero is not None:
        poster = hero.find_one('div[data-testid="hero-media__poster"] img.ipc-image')
        if poster is not None and poster.attribute("src"):
            return absolutize_url(poster.attribute("src"))

    _fallback("poster_url", "image")
    return _meta_text(metadata, "image")


def get_trailer_url(page: Node, metadata: dict) -> str | None:
    hero = hero_container(page)
    if hero is not None:
        trailer = hero.find_one('a[data-testid="video-player-slate-overlay"]')
        href = trailer.attribute("href") if trailer is not None else None
        if href:
            if href.startswith("/"):
                return absolutize_url(href)
            return href

    _fallback("trailer_url", "trailer.url")
    return _meta_text(metadata, "trailer.url") or _meta_text(metadata, "trailer.embedUrl")


def get_plot(page: Node, metadata: dict) -> str | None:
    hero = hero_container(page)
    if hero is not None:
        container = hero.find_one('p[data-testid="plot"]')
        if container is not None:
            plot = container.find_one('span[data-testid="plot-xl"]') or container.find_one("span")
            if plot is not None and plot.text():
                return plot.text()

    _fallback("plot", "description")
    return _meta_text(metadata, "description")


def get_cast(page: Node, metadata: dict) -> list[CastMember]:
    container = cast_container(page)
    items = container.find('div[data-testid="title-cast-item"]') if container is not None else []
    if items:
        cast = []
        for item in items:
            img = item.find_one("img")
            actor = item.find_one('a[data-testid="title-cast-item__actor"]')
            character = item.find_one('a[data-testid="cast-item-characters-link"]')

            href = actor.attribute("href") if actor is not None else None
            link = absolutize_url(href) if href else None
            src = img.attribute("src") if img is not None else None
            cast.append(CastMember(
                id=_match_id(_NAME_ID_RE, link),
                actor=actor.text() if actor is not None else None,
                character=character.text() if character is not None else None,
                link=link,
                image=absolutize_url(src) if src else None,
            ))
        return cast

    _fallback("cast", "actor.*.name")
    names = resolve("actor.*.name", metadata)
    if not isinstance(names, list):
        return []
    urls = resolve("actor.*.url", metadata) or []
    cast = []
    for i, name in enumerate(names):
        if not isinstance(name, str) or not clean(name):
            continue
        url = urls[i] if i < len(urls) and isinstance(urls[i], str) else None
        link = absolutize_url(url) if url else None
        cast.append(CastMember(id=_match_id(_NAME_ID_RE, link), actor=clean(name), link=link))
    return cast


def get_similars(page: Node, metadata: dict) -> list[SimilarTitle]:
    """'More like this' titles. The metadata has no equivalent, so no fallback."""
    section = page.find_one('section[data-testid="MoreLikeThis"]')
    if section is None:
        return []
    similars = []
    for card in section.find('div.ipc-poster-card[role="group"]'):
        anchor = card.find_one("a.ipc-poster-card__title")
        title = link = None
        if anchor is not None:
            label = anchor.find_one('span[data-testid="title"]')
            title = label.text() if label is not None else anchor.text() or None
            href = anchor.attribute("href")
            link = absolutize_url(href) if href else None
        similars.append(SimilarTitle(id=_match_id(_TITLE_ID_RE, link), title=title, link=link))
    return similars


def get_technical_specs(page: Node, metadata: dict) -> list[TechnicalSpec]:
    specs = []
    for item in page.find('li[data-testid^="title-techspec_"]'):
        label = item.find_one(".ipc-metadata-list-item__label")
        name = label.text() if label is not None else ""
        if not name:
            testid = item.attribute("data-testid") or ""
            name = testid.removeprefix("title-techspec_").replace("_", " ").capitalize()

        values = [v.text() for v in item.find(".ipc-metadata-list-item__list-content-item")]
        values = [v for v in values if v]
        if not values:
            content = item.find_one(".ipc-metadata-list-item__content-container")
            if content is not None and content.text():
                values = [content.text()]
        if name and values:
            specs.append(TechnicalSpec(name=name, value=", ".join(values)))
    return specs


def get_season_numbers(page: Node, metadata: dict, is_series: bool) -> list[int]:
    """Season numbers offered by the episode browser, ascending.

    Empty for anything that is not a series.
    """
    if not is_series:
        return []
    container = page.find_one('div[data-testid="episodes-browse-episodes"]')
    if container is None:
        return []

    numbers: list[int] = []
    options = container.find("select#browse-episodes-season option")
    if options:
        for option in options:
            # "Unknown" is offered as -1
            try:
                value = int((option.attribute("value") or "").strip())
            except ValueError:
                continue
            if value > 0:
                numbers.append(value)
    else:
        for anchor in container.find("a"):
            m = _SEASON_HREF_RE.search(anchor.attribute("href") or "")
            if m and int(m.group(1)) > 0:
                numbers.append(int(m.group(1)))
    return sorted(set(numbers))


# ===========================================================================
#  Episode list page
# ===========================================================================


def split_episode_title(title: str | None) -> tuple[int | None, int | None, str | None]:
    """'S8.E1 ∙ The Locomotion Interruption' -> (8, 1, 'The Locomotion Interruption').

    Best effort: titles without a season/episode prefix come back unchanged
    with None numbers.
    """
    if not title:
        return None, None, title
    m = _EPISODE_CODE_RE.match(title)
    if not m:
        return None, None, title
    return int(m.group(1)), int(m.group(2)), clean(title[m.end():]) or None


def get_episodes(page: Node) -> list[Episode]:
    episodes = []
    for article in page.find("article.episode-item-wrapper"):
        img = article.find_one("img.ipc-image")
        heading = article.find_one('h4[data-testid="slate-list-card-title"]')
        anchor = article.find_one('h4[data-testid="slate-list-card-title"] a')
        heading_parent = heading.parent() if heading is not None else None
        air_date = heading_parent.find_one("span") if heading_parent is not None else None
        plot = article.find_one('div.ipc-html-content[role="presentation"]')
        rating_group = article.find_one('div[data-testid="ratingGroup--container"]')

        rating = votes = None
        if rating_group is not None:
            star = rating_group.find_one("span.ipc-rating-star--rating")
            count = rating_group.find_one("span.ipc-rating-star--voteCount")
            rating = _to_float(star.text()) if star is not None else None
            votes = parse_count(count.text()) if count is not None else None

        href = anchor.attribute("href") if anchor is not None else None
        link = absolutize_url(href) if href else None
        src = img.attribute("src") if img is not None else None
        season, number, title = split_episode_title(heading.text() if heading is not None else None)

        episodes.append(Episode(
            id=_match_id(_TITLE_ID_RE, link),
            title=title,
            link=link,
            image=absolutize_url(src) if src else None,
            plot=plot.text() if plot is not None else None,
            rating=rating,
            rating_votes=votes,
            season=season,
            episode=number,
            air_date=parse_date(air_date.text()) if air_date is not None else None,
        ))
    return episodes


# ===========================================================================
#  Resolver registry: Title field -> resolver, in evaluation order
#
#  season_numbers is not listed: it depends on is_series and is resolved by
#  the parser once is_series is known.
# ===========================================================================

FIELD_RESOLVERS: dict[str, Callable[[Node, dict], Any]] = {
    "is_series": is_series,
    "title": get_title,
    "original_title": get_original_title,
    "year": get_year,
    "length": get_length,
    "rating": get_rating,
    "rating_votes": get_rating_votes,
    "popularity_score": get_popularity_score,
    "meta_score": get_meta_score,
    "genres": get_genres,
    "poster_url": get_poster_url,
    "trailer_url": get_trailer_url,
    "plot": get_plot,
    "cast": get_cast,
    "similars": get_similars,
    "technical_specs": get_technical_specs,
}
