"""
Simulation session: per-crop simulators, stage memory and derived queries.

A :class:`SimulationSession` owns one :class:`~.model.GrowthSimulator` per
crop and one :class:`~.tracker.StageTracker`, so no state is shared between
sessions. Control flow for a stage query:

crop, day, inputs → ``GrowthSimulator.simulate`` → ``classify`` →
``StageTracker.reconcile`` → ``StageCatalog`` entry.

Sessions are not thread-safe; use one session per worker.
"""

from __future__ import annotations

import logging
from bisect import bisect_left
from dataclasses import dataclass
from typing import Mapping, Sequence

import pandas as pd

from phenoyield.core.catalog import StageCatalog, StageCatalogEntry
from phenoyield.core.crops import CropProfile, default_profiles
from phenoyield.core.data_containers import (
    Environment,
    SimulationState,
    StressIndicators,
)
from phenoyield.core.errors import UnknownCropError
from phenoyield.core.harvest import HarvestPrediction, HarvestPredictor
from phenoyield.core.model import GrowthSimulator
from phenoyield.core.tracker import StageTracker
from phenoyield.library.stress import discrete_stress_effect

logger = logging.getLogger(__name__)

# Stress-adjusted day thresholds; the k-th bucket maps to catalog index 2k.
_FALLBACK_DAY_EDGES = (3, 7, 15, 25, 35, 45, 55, 65, 75, 85, 95, 105, 120, 140, 160)


def fallback_stage_code(
    codes: Sequence[str], day: int, stress_effect: float
) -> str:
    """
    Day-proportional stage estimate used when a code is missing.

    Parameters
    ----------
    codes : sequence of str
        Catalog codes in ascending order; must not be empty.
    day : int
        Days after sowing.
    stress_effect : float
        Discrete stress multiplier slowing the progression.

    Returns
    -------
    str
        ``codes[min(2k, len(codes) - 1)]`` where ``k`` is the bucket of
        ``day × stress_effect``.
    """
    k = bisect_left(_FALLBACK_DAY_EDGES, day * stress_effect)
    return codes[min(2 * k, len(codes) - 1)]


@dataclass(frozen=True)
class StageReport:
    """Stage reached by a crop on a simulated day."""

    code: str
    entry: StageCatalogEntry
    state: SimulationState
    fallback: bool = False

    @property
    def description(self) -> str:
        return self.entry.description


@dataclass(frozen=True)
class Predictions:
    """Yield, stress and advisory outlook for the current day."""

    yield_prediction: float
    stress_indicators: StressIndicators
    irrigation_recommendation: str
    fertilizer_recommendation: str
    disease_prevention_recommendation: str
    leaf_area_index: float
    total_biomass: float
    development_stage: float
    root_depth: float


class SimulationSession:
    """
    Per-crop simulation session.

    Parameters
    ----------
    profiles : mapping of str to CropProfile, optional
        Crop parameters; defaults to every preset.
    catalog : StageCatalog, optional
        Stage catalog; defaults to the packaged BBCH catalog.
    harvest : HarvestPredictor, optional
        Harvest timing model.

    Examples
    --------
    >>> session = SimulationSession()
    >>> report = session.current_stage("cereals", 0, temperature=25.0)
    >>> report.code
    '00'
    """

    def __init__(
        self,
        profiles: Mapping[str, CropProfile] | None = None,
        catalog: StageCatalog | None = None,
        harvest: HarvestPredictor | None = None,
    ):
        self.profiles = dict(default_profiles() if profiles is None else profiles)
        self.catalog = StageCatalog.default() if catalog is None else catalog
        self.harvest = HarvestPredictor() if harvest is None else harvest
        self.tracker = StageTracker()
        # Codes actually reported, including fallback estimates
        self._reported = StageTracker()
        self._simulators: dict[str, GrowthSimulator] = {}

    # ---------------------------
    # Crops and simulators
    # ---------------------------
    def crops(self) -> list[str]:
        """Crops with both a profile and a catalog table."""
        return sorted(c for c in self.profiles if c in self.catalog)

    def _check_crop(self, crop: str) -> None:
        if crop not in self.profiles or crop not in self.catalog:
            raise UnknownCropError(crop, known=self.crops())

    def simulator(self, crop: str) -> GrowthSimulator:
        """
        The session's simulator for ``crop``, created on first use.

        Raises
        ------
        UnknownCropError
            If the crop has no profile or no catalog table.
        """
        sim = self._simulators.get(crop)
        if sim is None:
            self._check_crop(crop)
            sim = GrowthSimulator(profile=self.profiles[crop])
            self._simulators[crop] = sim
        return sim

    def reset(self, crop: str | None = None) -> None:
        """
        Restart the simulation of ``crop`` (or of every crop).

        Drops the simulator and clears the highest-stage memory, so the next
        stage query may return a lower code than before.
        """
        if crop is None:
            self._simulators.clear()
        else:
            self._simulators.pop(crop, None)
        self.tracker.reset(crop)
        self._reported.reset(crop)

    # ---------------------------
    # Stage queries
    # ---------------------------
    def current_stage(
        self,
        crop: str,
        day: int,
        temperature: float = 25.0,
        water: float = 25.0,
        fertilizer: float = 150.0,
        humidity: float = 60.0,
        wind_speed: float = 2.0,
        soil_ph: float | None = None,
        soil_nitrogen: float | None = None,
    ) -> StageReport | None:
        """
        Simulate ``day`` and return the monotonic stage reached.

        If the classified code is missing from the crop's catalog, a
        day-proportional estimate is returned with ``fallback=True``. The
        reported code never drops below one reported earlier for the crop,
        whichever path produced it. Returns ``None`` only when the crop's
        catalog table is empty.

        Raises
        ------
        UnknownCropError
            If the crop is not known to the session.
        """
        sim = self.simulator(crop)
        state = sim.simulate(
            day,
            temperature,
            water,
            fertilizer,
            humidity,
            wind_speed,
            soil_ph,
            soil_nitrogen,
        )
        code = self.tracker.reconcile(crop, sim.stage_code())
        stages = self.catalog.stages_for(crop)
        if not stages:
            logger.warning("No stage data available for %s", crop)
            return None

        candidate = code
        if code not in stages:
            effect = discrete_stress_effect(temperature, water, fertilizer)
            candidate = fallback_stage_code(list(stages), day, effect)
            logger.warning(
                "%s: stage %s not in catalog, estimating %s from day %s",
                crop,
                code,
                candidate,
                day,
            )
        final = self._reported.reconcile(crop, candidate)
        return StageReport(
            code=final, entry=stages[final], state=state, fallback=final != code
        )

    def upcoming_stages(
        self, crop: str, code: str, n: int = 3
    ) -> list[StageCatalogEntry]:
        return self.catalog.upcoming_stages(crop, code, n)

    def previous_stages(
        self, crop: str, code: str, n: int = 3
    ) -> list[StageCatalogEntry]:
        return self.catalog.previous_stages(crop, code, n)

    # ---------------------------
    # Outlook
    # ---------------------------
    def predictions(
        self,
        crop: str,
        day: int,
        temperature: float,
        water: float,
        fertilizer: float,
        humidity: float = 60.0,
        wind_speed: float = 2.0,
        soil_ph: float | None = None,
        soil_nitrogen: float | None = None,
    ) -> Predictions:
        """Simulate ``day`` and collect yield, stress and advisories."""
        sim = self.simulator(crop)
        state = sim.simulate(
            day,
            temperature,
            water,
            fertilizer,
            humidity,
            wind_speed,
            soil_ph,
            soil_nitrogen,
        )
        return Predictions(
            yield_prediction=sim.yield_prediction(),
            stress_indicators=sim.stress_indicators(),
            irrigation_recommendation=sim.irrigation_recommendation(),
            fertilizer_recommendation=sim.fertilizer_recommendation(),
            disease_prevention_recommendation=(
                sim.disease_prevention_recommendation()
            ),
            leaf_area_index=state.leaf_area_index,
            total_biomass=state.total_biomass,
            development_stage=state.development_stage,
            root_depth=state.root_depth,
        )

    def predict_harvest(
        self,
        crop: str,
        current_day: int,
        temperature: float,
        water: float,
        fertilizer: float,
        humidity: float = 60.0,
        wind_speed: float = 2.0,
    ) -> HarvestPrediction:
        """
        Harvest readiness, days remaining and yield outlook.

        Raises
        ------
        UnknownCropError
            If the crop is not known to the session.
        ValueError
            If the inputs are not a valid :class:`Environment`; the session
            is left untouched.
        """
        environment = Environment(
            temperature=temperature,
            water=water,
            fertilizer=fertilizer,
            humidity=humidity,
            wind_speed=wind_speed,
        )
        report = self.current_stage(
            crop, current_day, temperature, water, fertilizer, humidity, wind_speed
        )
        if report is None:
            return HarvestPrediction.unavailable()
        return self.harvest.predict(
            self.simulator(crop), report.code, current_day, environment
        )

    def stage_progression(
        self, crop: str, environment: Environment, max_days: int = 150
    ) -> pd.DataFrame:
        """
        BBCH trace of a fresh simulator under constant inputs.

        Stops on the first day the code reaches the crop's ready code or the
        stage reaches maturity. The session's own simulator and stage memory
        are not used.
        """
        self._check_crop(crop)
        profile = self.profiles[crop]
        sim = GrowthSimulator(profile=profile)

        def ready_or_mature(s: GrowthSimulator) -> bool:
            return self.harvest.is_ready(profile, s.stage_code()) or s.is_mature()

        return sim.run_until(0, environment, max_days, stop=ready_or_mature).to_frame()


