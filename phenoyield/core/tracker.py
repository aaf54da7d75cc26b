"""Monotonic stage tracking: the displayed stage code never regresses."""

from __future__ import annotations

import logging

from phenoyield.core.catalog import parse_code

logger = logging.getLogger(__name__)


def code_less_than(a: str, b: str) -> bool:
    """
    Compare two stage codes.

    Numeric comparison of the leading digits when both codes have them,
    otherwise plain string comparison.
    """
    na, nb = parse_code(a), parse_code(b)
    if na is not None and nb is not None:
        return na < nb
    return a < b


class StageTracker:
    """
    Per-crop memory of the highest stage code reached in a session.

    A transient dip in the inputs can lower the classified code; the tracker
    clamps it to the highest code seen so far. Memory for a crop is created
    on the first :meth:`reconcile` call and is only cleared by :meth:`reset`.

    Examples
    --------
    >>> t = StageTracker()
    >>> t.reconcile("cereals", "30")
    '30'
    >>> t.reconcile("cereals", "21")
    '30'
    >>> t.reset("cereals")
    >>> t.reconcile("cereals", "21")
    '21'
    """

    def __init__(self) -> None:
        self._highest: dict[str, str] = {}

    def reconcile(self, crop: str, raw_code: str) -> str:
        """Return the higher of ``raw_code`` and the stored code, storing it."""
        prev = self._highest.get(crop)
        final = raw_code
        if prev is not None and code_less_than(raw_code, prev):
            logger.debug(
                "%s: raw stage %s below highest %s, holding", crop, raw_code, prev
            )
            final = prev
        self._highest[crop] = final
        return final

    def highest(self, crop: str) -> str | None:
        return self._highest.get(crop)

    def reset(self, crop: str | None = None) -> None:
        """Forget the highest code of ``crop``, or of every crop if None."""
        if crop is None:
            self._highest.clear()
        else:
            self._highest.pop(crop, None)
        logger.info("Stage memory reset for %s", crop or "all crops")
