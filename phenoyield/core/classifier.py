"""
Development-stage scalar to BBCH code classification.

The classifier is a single function over sorted ``(upper_bound, code)``
tables: the first code whose upper bound exceeds the scalar is returned and
anything at or beyond the last bound maps to ``"99"`` (harvested product).
Tables are kept per crop so that crops with divergent BBCH scales (maize has
no tillering, cotton forms side shoots and opens bolls) return codes that
exist in their own catalogs without duplicating the dispatch logic.

Cereals and rice share the generic cereal table.
"""

from __future__ import annotations

from bisect import bisect_right
from typing import Mapping, Sequence

from phenoyield.core.errors import UnknownCropError

Breakpoints = Sequence[tuple[float, str]]

TERMINAL_CODE = "99"

# Germination and leaf development are common to every table.
_EARLY: tuple[tuple[float, str], ...] = (
    (0.01, "00"),  # dry seed
    (0.02, "01"),
    (0.03, "03"),
    (0.05, "05"),
    (0.07, "07"),
    (0.09, "09"),  # emergence
    (0.15, "10"),
    (0.20, "11"),
    (0.25, "12"),
    (0.30, "13"),
    (0.35, "14"),
    (0.40, "15"),
    (0.45, "16"),
    (0.50, "17"),
    (0.55, "18"),
    (0.60, "19"),
)

CEREAL_BREAKPOINTS: tuple[tuple[float, str], ...] = _EARLY + (
    # tillering
    (0.65, "21"),
    (0.70, "25"),
    (0.75, "29"),
    # stem elongation
    (0.80, "30"),
    (0.85, "32"),
    (0.90, "37"),
    (0.95, "39"),
    # booting / heading
    (1.00, "45"),
    (1.05, "51"),
    (1.10, "55"),
    (1.15, "59"),
    # flowering
    (1.20, "61"),
    (1.25, "65"),
    (1.30, "69"),
    # grain development
    (1.40, "71"),
    (1.50, "73"),
    (1.60, "75"),
    (1.70, "77"),
    # ripening
    (1.80, "83"),
    (1.90, "85"),
    (2.00, "87"),
    (2.10, "89"),
    (2.20, "92"),
)

MAIZE_BREAKPOINTS: tuple[tuple[float, str], ...] = _EARLY + (
    # stem elongation (nodes)
    (0.65, "30"),
    (0.70, "32"),
    (0.75, "34"),
    (0.80, "35"),
    (0.85, "37"),
    (0.90, "39"),
    # tassel emergence
    (0.95, "51"),
    (1.00, "53"),
    (1.05, "55"),
    (1.10, "59"),
    # flowering
    (1.15, "61"),
    (1.20, "63"),
    (1.25, "65"),
    (1.30, "69"),
    # kernel development
    (1.40, "71"),
    (1.50, "73"),
    (1.60, "75"),
    (1.70, "79"),
    # ripening
    (1.80, "83"),
    (1.90, "85"),
    (2.00, "87"),
    (2.10, "89"),
    (2.20, "97"),
)

COTTON_BREAKPOINTS: tuple[tuple[float, str], ...] = _EARLY + (
    # side shoots
    (0.65, "21"),
    (0.70, "23"),
    # main stem elongation
    (0.75, "31"),
    (0.80, "33"),
    (0.85, "35"),
    # flower buds
    (0.90, "51"),
    (0.95, "55"),
    (1.00, "59"),
    # flowering
    (1.05, "60"),
    (1.10, "61"),
    (1.15, "65"),
    (1.20, "67"),
    (1.30, "69"),
    # boll development
    (1.40, "71"),
    (1.50, "73"),
    (1.60, "75"),
    (1.70, "79"),
    # boll opening
    (1.80, "81"),
    (1.90, "83"),
    (2.00, "85"),
    (2.10, "89"),
    (2.20, "97"),
)

BREAKPOINTS: Mapping[str, Breakpoints] = {
    "cereals": CEREAL_BREAKPOINTS,
    "rice": CEREAL_BREAKPOINTS,
    "maize": MAIZE_BREAKPOINTS,
    "cotton": COTTON_BREAKPOINTS,
}


def breakpoints_for(crop: str) -> Breakpoints:
    """
    Return the breakpoint table of a crop.

    Raises
    ------
    UnknownCropError
        If no table is registered for ``crop``.
    """
    try:
        return BREAKPOINTS[crop]
    except KeyError as e:
        raise UnknownCropError(crop, known=BREAKPOINTS) from e


def classify(
    development_stage: float, breakpoints: Breakpoints | None = None
) -> str:
    """
    Map a development-stage scalar to a BBCH code.

    Parameters
    ----------
    development_stage : float
        0 dry seed, 1 anthesis, 2 maturity; values above 2 are senescence.
    breakpoints : sequence of (float, str), optional
        Ascending ``(upper_bound, code)`` pairs. Defaults to
        :data:`CEREAL_BREAKPOINTS`.

    Returns
    -------
    str
        The first code whose upper bound is strictly greater than
        ``development_stage``, or ``"99"`` past the last bound.

    Examples
    --------
    >>> classify(0.0)
    '00'
    >>> classify(1.0)
    '51'
    >>> classify(2.5)
    '99'
    """
    table = CEREAL_BREAKPOINTS if breakpoints is None else breakpoints
    bounds = [upper for upper, _ in table]
    idx = bisect_right(bounds, development_stage)
    if idx >= len(table):
        return TERMINAL_CODE
    return table[idx][1]
