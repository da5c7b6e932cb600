"""Canonical series identity for samples."""

from __future__ import annotations

from collections.abc import Mapping


def series_key(name: str, tags: Mapping[str, str]) -> str:
    """Return the identity of the series *name* + *tags*.

    Tags are sorted by key, so insertion order never matters:
    ``series_key("cpu", {"b": "2", "a": "1"}) == "cpu#a:1|b:2|"``.
    """
    key = name + "#"
    for tag in sorted(tags):
        key += f"{tag}:{tags[tag]}|"
    return key
