"""
BBCH stage catalog and neighbor queries.

The catalog is static data: one ordered table of stage codes per crop, each
entry carrying a short description and a phenological category. It is shipped
as ``phenoyield/data/bbch_catalog.json`` and loaded once by
:meth:`StageCatalog.default`.

Ordering
--------
Codes are not evenly spaced (``00, 01, 03, 05, 07, 09, 10, 11, ...``), so
entries are ordered by the integer value of their leading digits, never by
plain string comparison. Codes without leading digits cannot be placed on the
numeric scale; they fall back to string order and sort after every numeric
code.
"""

from __future__ import annotations

import json
import logging
import re
from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Literal, Mapping

from phenoyield.core.errors import UnknownCropError

logger = logging.getLogger(__name__)

CATALOG_RESOURCE = "bbch_catalog.json"

_LEADING_INT = re.compile(r"^\s*(\d+)")


def parse_code(code: str) -> int | None:
    """
    Integer value of the leading digits of a stage code.

    Returns ``None`` when the code does not start with a digit.

    >>> parse_code("07"), parse_code("85b"), parse_code("x1")
    (7, 85, None)
    """
    m = _LEADING_INT.match(str(code))
    return int(m.group(1)) if m else None


def code_sort_key(code: str) -> tuple[int, int, str]:
    """Sort key placing numeric codes by value, then the rest by string."""
    value = parse_code(code)
    if value is None:
        return (1, 0, str(code))
    return (0, value, str(code))


class StageCategory(str, Enum):
    """Phenological phase of a stage code."""

    GERMINATION = "germination"
    LEAF_DEVELOPMENT = "leaf_development"
    TILLERING = "tillering"
    STEM_ELONGATION = "stem_elongation"
    BOOTING = "booting"
    HEADING = "heading"
    FLOWERING = "flowering"
    FRUIT_DEVELOPMENT = "fruit_development"
    RIPENING = "ripening"
    SENESCENCE = "senescence"


@dataclass(frozen=True, slots=True)
class StageCatalogEntry:
    """One BBCH stage of one crop."""

    code: str
    description: str
    category: StageCategory


class StageCatalog:
    """
    Read-only per-crop tables of BBCH stages.

    Parameters
    ----------
    crops : mapping
        ``{crop: {code: StageCatalogEntry}}``; reordered by code on load.
    principal_stages : mapping, optional
        General BBCH scale, principal stage digit → description.
    crop_names : mapping, optional
        Display name per crop identifier.

    Examples
    --------
    >>> cat = StageCatalog.default()
    >>> [e.code for e in cat.upcoming_stages("cereals", "09", 3)]
    ['10', '11', '12']
    """

    def __init__(
        self,
        crops: Mapping[str, Mapping[str, StageCatalogEntry]],
        principal_stages: Mapping[str, str] | None = None,
        crop_names: Mapping[str, str] | None = None,
    ):
        self._stages: dict[str, dict[str, StageCatalogEntry]] = {
            crop: {
                code: stages[code]
                for code in sorted(stages, key=code_sort_key)
            }
            for crop, stages in crops.items()
        }
        self._keys = {
            crop: [code_sort_key(c) for c in stages]
            for crop, stages in self._stages.items()
        }
        self._principal = dict(principal_stages or {})
        self._names = dict(crop_names or {})

    # ---------------------------
    # Construction
    # ---------------------------
    @classmethod
    def from_dict(cls, data: Mapping) -> "StageCatalog":
        """
        Build a catalog from the JSON document structure.

        Raises
        ------
        ValueError
            If an entry carries an unknown category.
        """
        crops: dict[str, dict[str, StageCatalogEntry]] = {}
        names: dict[str, str] = {}
        for crop, payload in data.get("crops", {}).items():
            names[crop] = payload.get("crop_name", crop)
            crops[crop] = {
                str(code): StageCatalogEntry(
                    code=str(code),
                    description=raw["description"],
                    category=StageCategory(raw["category"]),
                )
                for code, raw in payload.get("growth_stages", {}).items()
            }
        principal = data.get("general_scale", {}).get(
            "principal_growth_stages", {}
        )
        return cls(crops, principal_stages=principal, crop_names=names)

    @classmethod
    def from_json(cls, path: str | Path) -> "StageCatalog":
        with open(path, encoding="utf-8") as fh:
            return cls.from_dict(json.load(fh))

    @classmethod
    def default(cls) -> "StageCatalog":
        """The packaged catalog, loaded once per process."""
        return _packaged_catalog()

    # ---------------------------
    # Lookups
    # ---------------------------
    def crops(self) -> list[str]:
        return sorted(self._stages)

    def __contains__(self, crop: object) -> bool:
        return crop in self._stages

    def crop_name(self, crop: str) -> str:
        self.stages_for(crop)
        return self._names.get(crop, crop)

    def stages_for(self, crop: str) -> dict[str, StageCatalogEntry]:
        """
        Ordered mapping code → entry for ``crop``.

        Raises
        ------
        UnknownCropError
            If ``crop`` is not in the catalog.
        """
        try:
            return dict(self._stages[crop])
        except KeyError as e:
            raise UnknownCropError(crop, known=self._stages) from e

    def entry(self, crop: str, code: str) -> StageCatalogEntry | None:
        """Catalog entry for ``code``, or ``None`` if the crop lacks it."""
        return self.stages_for(crop).get(code)

    def describe(self, crop: str, code: str) -> str:
        entry = self.entry(crop, code)
        if entry is None:
            return f"Stage {code} not found for {crop}"
        return entry.description

    def principal_stage_description(self, principal: str | int) -> str:
        """Description of a principal stage (first digit of a code)."""
        return self._principal.get(str(principal), "Unknown stage")

    # ---------------------------
    # Neighbors
    # ---------------------------
    def neighbors(
        self,
        crop: str,
        code: str,
        n: int = 3,
        direction: Literal["previous", "next"] = "next",
    ) -> list[StageCatalogEntry]:
        """
        Up to ``n`` entries strictly before or after ``code``.

        Parameters
        ----------
        crop : str
            Crop identifier.
        code : str
            Reference code. It need not be in the catalog; its position is
            given by its sort key.
        n : int, default=3
            Maximum number of entries.
        direction : {'previous', 'next'}
            Side of ``code`` to return.

        Returns
        -------
        list of StageCatalogEntry
            Entries in ascending code order.

        Raises
        ------
        UnknownCropError
            If ``crop`` is not in the catalog.
        ValueError
            If ``direction`` is not recognised or ``n`` is negative.
        """
        if n < 0:
            raise ValueError("n must be non-negative.")
        entries = list(self.stages_for(crop).values())
        keys = self._keys[crop]
        key = code_sort_key(code)
        if direction == "next":
            start = bisect_right(keys, key)
            return entries[start:start + n]
        if direction == "previous":
            stop = bisect_left(keys, key)
            return entries[max(0, stop - n):stop]
        raise ValueError("direction must be 'previous' or 'next'.")

    def upcoming_stages(
        self, crop: str, code: str, n: int = 3
    ) -> list[StageCatalogEntry]:
        return self.neighbors(crop, code, n, direction="next")

    def previous_stages(
        self, crop: str, code: str, n: int = 3
    ) -> list[StageCatalogEntry]:
        return self.neighbors(crop, code, n, direction="previous")


@lru_cache(maxsize=1)
def _packaged_catalog() -> StageCatalog:
    source = (
        resources.files("phenoyield").joinpath("data").joinpath(CATALOG_RESOURCE)
    )
    logger.debug("Loading stage catalog from %s", source)
    return StageCatalog.from_dict(json.loads(source.read_text("utf-8")))
