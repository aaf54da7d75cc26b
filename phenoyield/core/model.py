"""
Day-stepped crop growth simulator.

This module implements the deterministic evolution of one crop instance under
daily environmental and soil inputs. The public entry point is
:class:`GrowthSimulator`, which composes a :class:`~.crops.CropProfile`, a
:class:`~.data_containers.SoilState` and a mutable
:class:`~.data_containers.SimulationState`.

Each :meth:`GrowthSimulator.simulate` call runs six substeps in order, each
one reading the result of the previous:

1. water and nitrogen stress factors from the current inputs,
2. development stage from the stress-damped effective temperature sum,
3. leaf area index,
4. biomass accumulation (photosynthesis minus maintenance respiration),
5. grain yield through a harvest index,
6. root depth.

Design Principles
-----------------
- **Stateless heat sum**: the accumulated temperature is
  ``effective_temperature × day`` rather than a running integral over past
  days. A call therefore only needs the current inputs, so the stage
  does not depend on which days were simulated before.
- **Forward-only stage**: the heat sum cannot be negative, so the stage only
  moves forward for constant or improving inputs.
- **Non-decreasing biomass**: net growth is clamped at zero.
- **Side-effect-free projections**: optimal-yield, season and yield
  projections run on disposable copies, never on the live state.
- **Pure numerics**: no I/O; response curves live in
  :mod:`phenoyield.library.stress`.

See Also
--------
phenoyield.core.crops : ``CropProfile`` presets.
phenoyield.core.data_containers : ``SoilState``, ``SimulationState``,
    ``Environment``, ``SeasonResults``.
phenoyield.core.classifier : stage scalar → BBCH code.

Examples
--------
>>> from phenoyield.core.crops import CropProfile
>>> from phenoyield.core.model import GrowthSimulator
>>> sim = GrowthSimulator(profile=CropProfile.cereals())
>>> for day in range(60):
...     snap = sim.simulate(day, 25.0, 20.0, 150.0, 60.0, 2.0)
>>> sim.stage_code()
'73'
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable

import numpy as np

from phenoyield.core.classifier import Breakpoints, breakpoints_for, classify
from phenoyield.core.crops import CropProfile
from phenoyield.core.data_containers import (
    Environment,
    SeasonResults,
    SimulationState,
    SoilState,
    StressIndicators,
)
from phenoyield.library import advisories
from phenoyield.library.stress import (
    light_interception,
    nitrogen_stress,
    soil_nitrogen_effect,
    soil_ph_effect,
    temperature_response,
    water_stress,
)

logger = logging.getLogger(__name__)

MAX_SEASON_DAYS = 200
MATURITY_STAGE = 2.0

# Final yield prediction: biomass unit conversion and fixed harvest index
BIOMASS_TO_TONNES = 10.0
FINAL_HARVEST_INDEX = 0.45


@dataclass(slots=True)
class GrowthSimulator:
    r"""Day-stepped growth model for one crop instance.

    Parameters
    ----------
    profile : CropProfile
        Crop-specific physiological constants.
    soil : SoilState, optional
        Soil context; ``simulate`` overwrites pH and nitrogen when given.
    state : SimulationState, optional
        Mutable state, initialised to sowing.
    breakpoints : sequence of (float, str), optional
        Stage classification table; defaults to the table registered for
        ``profile.crop_name``.

    Notes
    -----
    - **Units.** Temperature [°C], water [mm/week], fertilizer [kg/ha],
      humidity [%], wind [m/s], soil nitrogen [%].
    - **Stress damping.** The development stage of day ``t`` is damped by the
      stress factors of the same call, computed from the current inputs.
    - The simulator does not clamp ``day``; negative days are the caller's
      responsibility.

    Examples
    --------
    >>> sim = GrowthSimulator(profile=CropProfile.maize())
    >>> snap = sim.simulate(10, 25.0, 30.0, 200.0, 60.0, 2.0)
    >>> snap.day
    10
    """

    profile: CropProfile
    soil: SoilState = field(default_factory=SoilState)
    state: SimulationState = field(default_factory=SimulationState)
    breakpoints: Breakpoints | None = None

    def __post_init__(self):
        if self.breakpoints is None:
            self.breakpoints = breakpoints_for(self.profile.crop_name)

    # ---------------------------
    # Public API
    # ---------------------------
    def simulate(
        self,
        day: int,
        temperature: float,
        water: float,
        fertilizer: float,
        humidity: float,
        wind_speed: float,
        soil_ph: float | None = None,
        soil_nitrogen: float | None = None,
    ) -> SimulationState:
        """
        Advance the state to ``day`` under the given inputs.

        Parameters
        ----------
        day : int
            Days after sowing.
        temperature : float
            Mean air temperature [°C].
        water : float
            Water supply [mm/week].
        fertilizer : float
            Fertilizer [kg/ha].
        humidity : float
            Relative humidity [%].
        wind_speed : float
            Wind speed [m/s].
        soil_ph : float, optional
            Replaces the soil pH when given.
        soil_nitrogen : float, optional
            Replaces the soil nitrogen content [%] when given.

        Returns
        -------
        SimulationState
            Snapshot (copy) of the updated state.
        """
        st, cp, soil = self.state, self.profile, self.soil

        # Record inputs
        st.day = day
        st.temperature = temperature
        st.water = water
        st.fertilizer = fertilizer
        st.humidity = humidity
        st.wind_speed = wind_speed
        if soil_ph is not None:
            soil.ph = soil_ph
        if soil_nitrogen is not None:
            soil.nitrogen = soil_nitrogen
        soil_eff = self._soil_effect(soil)

        # --- 1. Stress factors
        st.water_stress = water_stress(water, humidity, wind_speed)
        st.nitrogen_stress = nitrogen_stress(fertilizer)

        # --- 2. Development stage (damped by the current stress)
        st.development_stage = self._development_stage(
            temperature, day, min(st.water_stress, st.nitrogen_stress), cp
        )
        growth_factor = st.water_stress * st.nitrogen_stress * soil_eff

        # --- 3. Canopy
        st.leaf_area_index = self._leaf_area_index(
            st.development_stage, growth_factor, cp
        )

        # --- 4. Biomass
        st.total_biomass = self._biomass_next(
            st.total_biomass,
            st.development_stage,
            st.leaf_area_index,
            temperature,
            growth_factor,
            cp,
        )

        # --- 5. Yield
        st.grain_yield = self._grain_yield(
            st.total_biomass, st.development_stage, soil_eff, cp
        )

        # --- 6. Roots
        st.root_depth = self._root_depth(st.development_stage, cp)

        logger.debug(
            "%s day %s: DVS=%.3f LAI=%.2f biomass=%.2f ws=%.2f ns=%.2f",
            cp.crop_name,
            day,
            st.development_stage,
            st.leaf_area_index,
            st.total_biomass,
            st.water_stress,
            st.nitrogen_stress,
        )
        return st.copy()

    def step(
        self,
        day: int,
        environment: Environment,
        soil_ph: float | None = None,
        soil_nitrogen: float | None = None,
    ) -> SimulationState:
        """:meth:`simulate` with the inputs bundled in an ``Environment``."""
        return self.simulate(
            day,
            soil_ph=soil_ph,
            soil_nitrogen=soil_nitrogen,
            **environment.as_kwargs(),
        )

    def stage_code(self) -> str:
        """BBCH code of the current development stage."""
        return classify(self.state.development_stage, self.breakpoints)

    def is_mature(self) -> bool:
        return self.state.development_stage >= MATURITY_STAGE

    def yield_prediction(self) -> float:
        """
        Final yield prediction [t/ha] from the current state.

        Zero before anthesis. Afterwards biomass × 10 (unit conversion) ×
        0.45 (harvest index) × water and nitrogen stress × soil effects, then
        ×0.9 above 80 % humidity (disease), ×1.05 for wind in [2, 5] m/s
        (pollination) and ×0.9 above 8 m/s (erosion, drift).
        """
        st = self.state
        if st.development_stage < 1.0:
            return 0.0
        y = (
            st.total_biomass
            * BIOMASS_TO_TONNES
            * FINAL_HARVEST_INDEX
            * st.water_stress
            * st.nitrogen_stress
        )
        y *= self._soil_effect(self.soil)
        if st.humidity > 80:
            y *= 0.9
        if 2 <= st.wind_speed <= 5:
            y *= 1.05
        if st.wind_speed > 8:
            y *= 0.9
        return y

    def optimal_yield_prediction(self) -> float:
        """
        Potential yield under optimal inputs and soil.

        Runs a disposable simulator of the same crop from sowing until
        maturity (or :data:`MAX_SEASON_DAYS`). The live state and soil are
        never touched.
        """
        sim = GrowthSimulator(
            profile=self.profile,
            soil=SoilState.optimal(),
            breakpoints=self.breakpoints,
        )
        return sim.run_season(Environment.optimal()).final_yield

    def run_season(
        self, environment: Environment, max_days: int = MAX_SEASON_DAYS
    ) -> SeasonResults:
        """
        Simulate a fresh copy from day 0 until maturity.

        The copy starts from the initial state with this simulator's soil and
        stops after the first day with stage ≥ 2.0 or after ``max_days``
        days.

        Parameters
        ----------
        environment : Environment
            Constant inputs applied every day.
        max_days : int, default=200
            Iteration cap.

        Returns
        -------
        SeasonResults
            One row per simulated day.
        """
        sim = GrowthSimulator(
            profile=self.profile,
            soil=self.soil.copy(),
            breakpoints=self.breakpoints,
        )
        results = sim.run_until(0, environment, max_days)
        logger.info(
            "%s season: %d days, final yield %.2f",
            self.profile.crop_name,
            len(results),
            results.final_yield,
        )
        return results

    def project_yield(
        self, start_day: int, environment: Environment, horizon: int = 30
    ) -> SeasonResults:
        """
        Day-by-day yield projection continuing from the current state.

        Works on a copy; stops early once the crop is mature.
        """
        return self.copy().run_until(start_day, environment, horizon)

    def stress_indicators(self) -> StressIndicators:
        st = self.state
        return StressIndicators(
            water_stress=st.water_stress,
            nitrogen_stress=st.nitrogen_stress,
            temperature_stress=temperature_response(st.temperature),
            humidity=st.humidity,
            wind_speed=st.wind_speed,
            disease_risk=self.disease_risk(),
        )

    def disease_risk(self) -> str:
        return advisories.disease_risk(self.state.humidity)

    def irrigation_recommendation(self) -> str:
        return advisories.irrigation_recommendation(
            self.state.humidity, self.state.wind_speed
        )

    def fertilizer_recommendation(self) -> str:
        return advisories.fertilizer_recommendation(self.state.wind_speed)

    def disease_prevention_recommendation(self) -> str:
        return advisories.disease_prevention_recommendation(
            self.state.humidity
        )

    def copy(self) -> "GrowthSimulator":
        """Independent simulator with copied soil and state."""
        return GrowthSimulator(
            profile=self.profile,
            soil=self.soil.copy(),
            state=self.state.copy(),
            breakpoints=self.breakpoints,
        )

    def reset(self) -> None:
        """Return the state to sowing; the soil is kept."""
        self.state = SimulationState()

    def run_until(
        self,
        start_day: int,
        environment: Environment,
        max_days: int = MAX_SEASON_DAYS,
        stop: Callable[["GrowthSimulator"], bool] | None = None,
    ) -> SeasonResults:
        """
        Simulate ``start_day`` onwards in place under constant inputs.

        Parameters
        ----------
        start_day : int
            First simulated day.
        environment : Environment
            Inputs applied every day.
        max_days : int, default=200
            Iteration cap.
        stop : callable, optional
            Predicate on the simulator, checked after each day; the day that
            satisfies it is included. Defaults to :meth:`is_mature`.

        Returns
        -------
        SeasonResults
            One row per simulated day.
        """
        stop = GrowthSimulator.is_mature if stop is None else stop
        states, codes, yields = [], [], []
        for day in range(start_day, start_day + max_days):
            states.append(self.step(day, environment))
            codes.append(self.stage_code())
            yields.append(self.yield_prediction())
            if stop(self):
                break
        return SeasonResults.from_states(
            self.profile.crop_name, states, codes, yields
        )

    # --------------------------- End of public API --------------------------

    # ---------------------------
    # Substeps
    # ---------------------------
    @staticmethod
    def _soil_effect(soil: SoilState) -> float:
        """Product of the soil pH and soil nitrogen penalties."""
        return soil_ph_effect(soil.ph) * soil_nitrogen_effect(soil.nitrogen)

    @staticmethod
    def _development_stage(
        temperature: float, day: int, stress: float, cp: CropProfile
    ) -> float:
        r"""
        Development stage from the stress-damped heat sum.

        ``eff = min(max(0, T - tbasem), teffmx)``,
        ``heat = eff · day · (0.5 + 0.5 · stress)`` and the stage is
        piecewise linear in ``heat``:

        - germination ``[0, tsumem)`` → ``[0, 0.09)``,
        - vegetative ``[tsumem, tsum1)`` → ``[0.09, 1.0)``,
        - reproductive ``[tsum1, tsum1 + tsum2)`` → ``[1.0, 2.0)``,
        - beyond, clamped to 2.0.

        Parameters
        ----------
        temperature : float
            Mean air temperature [°C].
        day : int
            Days after sowing.
        stress : float
            ``min(water_stress, nitrogen_stress)`` in [0.1, 1.0].
        cp : CropProfile
            Uses ``tbasem``, ``teffmx``, ``tsumem``, ``tsum1``, ``tsum2``.

        Returns
        -------
        float
            Development stage in [0, 2].
        """
        eff = min(max(0.0, temperature - cp.tbasem), cp.teffmx)
        heat = eff * day * (0.5 + 0.5 * stress)
        xp = [0.0, cp.tsumem, cp.tsum1, cp.tsum1 + cp.tsum2]
        fp = [0.0, 0.09, 1.0, MATURITY_STAGE]
        return float(np.interp(heat, xp, fp))

    @staticmethod
    def _leaf_area_index(
        dvs: float, growth_factor: float, cp: CropProfile
    ) -> float:
        """
        Leaf area index for the current stage.

        The ceiling is ``lai_max × growth_factor`` (stresses and soil
        penalties). Zero before stage 0.1, a half-sine rise up to stage 1.0,
        flat until 1.5, then a linear decline to zero at 2.0.
        """
        if dvs < 0.1:
            return 0.0
        max_lai = cp.lai_max * growth_factor
        if dvs < 1.0:
            return max_lai * math.sin(math.pi * (dvs - 0.1) / 0.9)
        if dvs < 1.5:
            return max_lai
        return max_lai * max(0.0, 1.0 - (dvs - 1.5) / 0.5)

    @staticmethod
    def _biomass_next(
        biomass: float,
        dvs: float,
        lai: float,
        temperature: float,
        growth_factor: float,
        cp: CropProfile,
    ) -> float:
        r"""
        Accumulate one day of net growth.

        Before stage 0.1 biomass is seeded to at least 0.1. Afterwards

        .. math::

            P = A_{max} \, (1 - e^{-k \, LAI}) \, f(T) \, g, \qquad
            R = B \, r_m \, Q_{10}^{(T - 25)/10}

        and ``B ← B + max(0, P - R)``, where ``g`` is ``growth_factor``.
        """
        if dvs < 0.1:
            return max(biomass, 0.1)
        photo = (
            cp.amax
            * light_interception(lai, cp.kdif)
            * temperature_response(temperature)
            * growth_factor
        )
        resp = biomass * cp.maintenance_rate * cp.q10 ** (
            (temperature - 25.0) / 10.0
        )
        return biomass + max(0.0, photo - resp)

    @staticmethod
    def _grain_yield(
        biomass: float, dvs: float, soil_eff: float, cp: CropProfile
    ) -> float:
        """Zero before anthesis, then a harvest index rising 0 → max by 2.0."""
        if dvs < 1.0:
            return 0.0
        hi = min(cp.harvest_index_max, (dvs - 1.0) * cp.harvest_index_max)
        return biomass * hi * soil_eff

    @staticmethod
    def _root_depth(dvs: float, cp: CropProfile) -> float:
        """Linear from ``root_initial`` at sowing to ``root_max`` at anthesis."""
        if dvs >= 1.0:
            return cp.root_max
        return min(
            cp.root_max,
            cp.root_initial + dvs * (cp.root_max - cp.root_initial),
        )
