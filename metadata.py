"""JSON-LD metadata capture and dot-path resolution.

Title pages embed a schema.org document in a <script type="application/ld+json">
block. It is captured once per page and used as the fallback source for every
field resolver in extractors.py.

Paths are dot-separated. A '*' segment maps the rest of the path over every
element of the current list:

    resolve("aggregateRating.ratingValue", doc)  -> 8.7
    resolve("actor.*.name", doc)                 -> ["Tim Robbins", "Morgan Freeman"]
    resolve("review.*.author.*.name", doc)       -> [["A"], ["B", "C"]]
"""

from __future__ import annotations

import json
import logging
from typing import Any

from dom import Node

log = logging.getLogger(__name__)

WILDCARD = "*"


def resolve(path: str, document: Any) -> Any:
    """Resolve a dot path against a nested dict/list document.

    Missing keys resolve to None without raising; traversal continues on None
    so the result of a partly-missing path is None.
    """
    segments = path.split(".") if path else []
    return _walk(segments, document)


def _walk(segments: list[str], value: Any) -> Any:
    for i, segment in enumerate(segments):
        if segment == WILDCARD:
            rest = segments[i + 1:]
            if isinstance(value, dict):
                # schema.org allows a single object where a list is expected
                value = [value]
            if not isinstance(value, list):
                return None
            return [_walk(rest, item) for item in value]
        value = _step(value, segment)
    return value


def _step(value: Any, segment: str) -> Any:
    if isinstance(value, dict):
        return value.get(segment)
    if isinstance(value, list) and segment.isdigit():
        index = int(segment)
        return value[index] if index < len(value) else None
    return None


def extract_metadata(page: Node) -> dict:
    """Return the first JSON-LD block that parses as a JSON object, else {}."""
    for script in page.find('script[type="application/ld+json"]'):
        raw = script.raw_text().strip()
        if not raw:
            continue
        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            log.debug("Skipping malformed JSON-LD block: %s", e)
            continue
        if isinstance(document, list):
            document = next((d for d in document if isinstance(d, dict)), None)
        if isinstance(document, dict):
            return document
    return {}
