"""
Harvest readiness and days-to-harvest estimation.

Harvest timing is looked up in sparse per-crop tables of remaining days by
BBCH code. Codes missing from a table are resolved by linear interpolation
between the nearest lower and upper known codes, by numeric code distance
(not by day count); when only one side exists its value is used. The raw
estimate is then slowed down by a coarse, discrete stress effect
(:func:`~phenoyield.library.stress.discrete_stress_effect`).

The discrete stress model here is independent of the continuous stress ramps
of the growth simulator.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Mapping

import numpy as np

from phenoyield.core.catalog import parse_code
from phenoyield.core.crops import CropProfile
from phenoyield.core.data_containers import Environment
from phenoyield.core.model import GrowthSimulator
from phenoyield.library.stress import discrete_stress_effect

logger = logging.getLogger(__name__)

# Days from the stage to harvest (BBCH 87; 85 for cotton)
HARVEST_TIMINGS: Mapping[str, Mapping[str, int]] = {
    "cereals": {
        "00": 140, "01": 138, "03": 135, "05": 130, "07": 125, "09": 120,
        "10": 115, "11": 110, "12": 105, "13": 100, "14": 95, "15": 90,
        "16": 85, "17": 80, "18": 75, "19": 70,
        "21": 65, "22": 62, "23": 59, "24": 56, "25": 53, "26": 50,
        "27": 47, "28": 44, "29": 41,
        "30": 38, "31": 36, "32": 34, "33": 32, "34": 30, "35": 28,
        "36": 26, "37": 24, "39": 22,
        "41": 20, "43": 18, "45": 16, "47": 14, "49": 12,
        "51": 10, "52": 9, "53": 8, "54": 7, "55": 6, "56": 5, "57": 4,
        "59": 3,
        "61": 25, "65": 20, "69": 15,
        "71": 12, "73": 10, "75": 8, "77": 6,
        "83": 3, "85": 2, "87": 0, "89": 0,
    },
    "rice": {
        "00": 130, "01": 128, "03": 125, "05": 120, "07": 115, "09": 110,
        "10": 105, "11": 100, "12": 95, "13": 90, "14": 85, "15": 80,
        "16": 75, "17": 70, "18": 65, "19": 60,
        "21": 55, "22": 52, "23": 49, "24": 46, "25": 43, "26": 40,
        "27": 37, "28": 34, "29": 31,
        "30": 28, "32": 24, "34": 20, "37": 16, "39": 14,
        "41": 12, "43": 10, "45": 8, "47": 6, "49": 4,
        "51": 22, "53": 18, "55": 14, "57": 10, "59": 8,
        "61": 20, "65": 15, "69": 10,
        "71": 8, "73": 6, "75": 4, "77": 2,
        "83": 3, "85": 2, "87": 0, "89": 0,
    },
    "maize": {
        "00": 120, "01": 118, "03": 115, "05": 110, "07": 105, "09": 100,
        "10": 95, "11": 90, "12": 85, "13": 80, "14": 75, "15": 70,
        "16": 65, "17": 60, "18": 55, "19": 50,
        "51": 35, "53": 30, "55": 25, "59": 20,
        "61": 18, "63": 16, "65": 14, "67": 12, "69": 10,
        "71": 8, "73": 6, "75": 4, "77": 2,
        "83": 3, "85": 2, "87": 0, "89": 0,
    },
    "cotton": {
        "00": 180, "05": 175, "07": 170, "09": 165,
        "10": 160, "12": 150, "14": 140, "16": 130, "18": 120, "19": 110,
        "51": 80, "55": 70, "59": 60,
        "60": 50, "65": 40, "67": 35, "69": 30,
        "71": 25, "79": 10,
        "85": 0, "89": 0, "99": 0,
    },
}


def round_half_up(x: float) -> int:
    """Round to the nearest integer, halves away from -inf (66.5 → 67)."""
    return int(math.floor(x + 0.5))


def interpolate_days(
    timing: Mapping[str, int], code: str
) -> tuple[int, bool]:
    """
    Remaining days for ``code`` from a sparse timing table.

    Parameters
    ----------
    timing : mapping of str to int
        Known stage codes and their days to harvest.
    code : str
        Current stage code.

    Returns
    -------
    days : int
        Verbatim table value, the rounded linear interpolation between the
        bracketing codes, or the value of the only available side.
    low_confidence : bool
        True when nothing could be interpolated (empty table or a code that
        does not parse); ``days`` is then 0.

    Examples
    --------
    >>> interpolate_days({"10": 95, "30": 38}, "20")
    (67, False)
    """
    if code in timing:
        return int(timing[code]), False

    value = parse_code(code)
    known = sorted(
        (parse_code(c), d) for c, d in timing.items() if parse_code(c) is not None
    )
    if value is None or not known:
        logger.warning(
            "No harvest timing to interpolate for stage %r; returning 0", code
        )
        return 0, True

    xp = [c for c, _ in known]
    fp = [d for _, d in known]
    return round_half_up(float(np.interp(value, xp, fp))), False


@dataclass(frozen=True)
class HarvestPrediction:
    """Harvest timing and yield outlook for one crop on one day."""

    harvest_day: int
    days_remaining: int
    final_yield: float
    is_ready: bool
    potential_yield: float
    stage_code: str | None = None
    low_confidence: bool = False

    @classmethod
    def unavailable(cls) -> "HarvestPrediction":
        """Result used when no stage data is available."""
        return cls(
            harvest_day=0,
            days_remaining=0,
            final_yield=0.0,
            is_ready=False,
            potential_yield=0.0,
            low_confidence=True,
        )


class HarvestPredictor:
    """
    Days-to-harvest and yield outlook from the current stage code.

    Parameters
    ----------
    timings : mapping, optional
        Per-crop timing tables; defaults to :data:`HARVEST_TIMINGS`.
    """

    def __init__(
        self, timings: Mapping[str, Mapping[str, int]] | None = None
    ):
        self.timings = dict(HARVEST_TIMINGS if timings is None else timings)

    @staticmethod
    def is_ready(profile: CropProfile, stage_code: str) -> bool:
        """Ready from ``profile.ready_code`` (87, cotton 85) onwards."""
        value = parse_code(stage_code)
        return value is not None and value >= profile.ready_code

    def days_to_harvest(
        self, crop: str, stage_code: str, environment: Environment
    ) -> tuple[int, bool]:
        """
        Table days slowed by the discrete stress effect.

        Returns ``(round_half_up(raw / stress_effect), low_confidence)``.
        """
        timing = self.timings.get(crop)
        if not timing:
            logger.warning("No harvest timing table for %s", crop)
            return 0, True
        raw, low_confidence = interpolate_days(timing, stage_code)
        effect = discrete_stress_effect(
            environment.temperature, environment.water, environment.fertilizer
        )
        return round_half_up(raw / effect), low_confidence

    def predict(
        self,
        simulator: GrowthSimulator,
        stage_code: str,
        current_day: int,
        environment: Environment,
    ) -> HarvestPrediction:
        """
        Harvest outlook for a simulator already advanced to ``current_day``.

        Ready crops report 0 remaining days and the yield of the current
        state. Otherwise a copy of the simulator is advanced to the projected
        harvest day to estimate the final yield. The simulator passed in is
        never modified.
        """
        potential = simulator.optimal_yield_prediction()
        if self.is_ready(simulator.profile, stage_code):
            return HarvestPrediction(
                harvest_day=current_day,
                days_remaining=0,
                final_yield=simulator.yield_prediction(),
                is_ready=True,
                potential_yield=potential,
                stage_code=stage_code,
            )

        days, low_confidence = self.days_to_harvest(
            simulator.profile.crop_name, stage_code, environment
        )
        future = simulator.copy()
        future.step(current_day + days, environment)
        return HarvestPrediction(
            harvest_day=current_day + days,
            days_remaining=days,
            final_yield=future.yield_prediction(),
            is_ready=False,
            potential_yield=potential,
            stage_code=stage_code,
            low_confidence=low_confidence,
        )
