"""Exceptions raised by the phenoyield core."""

from __future__ import annotations

from typing import Iterable


class PhenoyieldError(Exception):
    """Base class for errors raised by phenoyield."""


class UnknownCropError(PhenoyieldError, KeyError):
    """
    Crop identifier not present in the profiles or the stage catalog.

    Subclasses :class:`KeyError` so callers that look crops up like a mapping
    can keep catching the builtin.

    Parameters
    ----------
    crop : str
        The identifier that failed to resolve.
    known : iterable of str, optional
        Identifiers that would have been accepted.
    """

    def __init__(self, crop: str, known: Iterable[str] = ()):
        self.crop = crop
        self.known = sorted(known)
        super().__init__(crop)

    def __str__(self) -> str:
        msg = f"Unknown crop '{self.crop}'."
        if self.known:
            msg += f" Known: {self.known}"
        return msg
