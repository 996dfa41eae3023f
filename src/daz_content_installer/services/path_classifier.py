"""Keyword classification of archive paths into asset categories.

Every segment of a path is lower-cased and checked against the folder
keyword table; a keyword matches when it is a substring of the segment, so
``wardrobe_accessories`` counts as clothing.  All functions are pure and the
results are sets, so classification never depends on enumeration order.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from daz_content_installer.constants import FOLDER_CATEGORY_KEYWORDS
from daz_content_installer.models.enums import AssetCategory
from daz_content_installer.utils.paths import path_parts


@dataclass(slots=True)
class Classification:
    categories: set[AssetCategory] = field(default_factory=set)
    keywords: set[str] = field(default_factory=set)

    def update(self, other: Classification) -> None:
        self.categories |= other.categories
        self.keywords |= other.keywords


def classify_segment(segment: str) -> Classification:
    """Return the categories whose keyword occurs inside *segment*."""
    lowered = segment.lower()
    result = Classification()
    for keyword, category in FOLDER_CATEGORY_KEYWORDS.items():
        if keyword in lowered:
            result.categories.add(category)
            result.keywords.add(keyword)
    return result


def classify_path(path: str) -> Classification:
    """Union the matches of every segment of an archive-internal path."""
    result = Classification()
    for segment in path_parts(path):
        result.update(classify_segment(segment))
    return result


def classify_paths(paths: Iterable[str]) -> Classification:
    result = Classification()
    for path in paths:
        result.update(classify_path(path))
    return result


def resolve_category(
    detected: set[AssetCategory],
    prior: AssetCategory = AssetCategory.UNKNOWN,
) -> AssetCategory:
    """Collapse detected categories into one value.

    A prior ``UNKNOWN`` means "not decided yet" and is ignored; any other
    prior category takes part in the union.

    >>> resolve_category(set())
    <AssetCategory.UNKNOWN: 'Unknown'>
    >>> resolve_category({AssetCategory.HAIR})
    <AssetCategory.HAIR: 'Hair'>
    >>> resolve_category({AssetCategory.HAIR}, AssetCategory.PROPS)
    <AssetCategory.MIXED: 'Mixed'>
    """
    merged = set(detected)
    if prior is not AssetCategory.UNKNOWN:
        merged.add(prior)
    if not merged:
        return AssetCategory.UNKNOWN
    if len(merged) == 1:
        return next(iter(merged))
    return AssetCategory.MIXED
