"""
Core containers for inputs, simulation state, and season outputs.

Classes
-------
Environment
    Frozen dataclass with the daily environmental inputs (temperature, water,
    fertilizer, humidity, wind speed).
SoilState
    Mutable soil context (pH, nutrients, organic matter) with defaults.
SimulationState
    Mutable per-simulator state advanced by
    :meth:`~phenoyield.core.model.GrowthSimulator.simulate`.
StressIndicators
    Snapshot of stress factors and disease risk.
SeasonResults
    Per-day trajectory arrays with a :meth:`SeasonResults.to_frame` export.

Functions
---------
nitrogen_mgkg_to_percent
    Convert laboratory soil nitrogen (mg/kg) to percent.

Notes
-----
- Units: temperature [°C], water [mm/week], fertilizer [kg/ha], humidity
  [%], wind speed [m/s], soil nitrogen [%].
- ``SimulationState`` keeps the last applied inputs next to the model
  variables so that derived queries (yield prediction, advisories) do not need
  the inputs passed again.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Sequence

import numpy as np
import pandas as pd

Array = np.ndarray


def nitrogen_mgkg_to_percent(mg_per_kg: float) -> float:
    """Convert soil nitrogen from mg/kg to percent (1 % = 10 000 mg/kg)."""
    return float(mg_per_kg) / 10000.0


# -------------------------
# Inputs
# -------------------------


@dataclass(frozen=True)
class Environment:
    """
    Environmental inputs applied on a simulated day.

    Attributes
    ----------
    temperature : float
        Mean air temperature [°C].
    water : float
        Water supply [mm/week].
    fertilizer : float
        Fertilizer applied [kg/ha].
    humidity : float, default=60.0
        Relative humidity [%].
    wind_speed : float, default=2.0
        Wind speed [m/s].

    Raises
    ------
    ValueError
        If humidity is outside [0, 100] or water, fertilizer or wind speed
        is negative.
    """

    temperature: float
    water: float
    fertilizer: float
    humidity: float = 60.0
    wind_speed: float = 2.0

    def __post_init__(self):
        if not (0.0 <= self.humidity <= 100.0):
            raise ValueError("humidity must be in [0, 100].")
        if self.water < 0.0 or self.fertilizer < 0.0 or self.wind_speed < 0.0:
            raise ValueError(
                "water, fertilizer and wind_speed must be non-negative."
            )

    @classmethod
    def optimal(cls) -> "Environment":
        """Inputs used for the potential (optimal) yield simulation."""
        return cls(
            temperature=28.0,
            water=30.0,
            fertilizer=200.0,
            humidity=60.0,
            wind_speed=2.0,
        )

    def as_kwargs(self) -> dict[str, float]:
        """Keyword arguments accepted by ``GrowthSimulator.simulate``."""
        return asdict(self)


@dataclass
class SoilState:
    """
    Soil context used by the soil penalties (no evolution logic).

    Parameters
    ----------
    ph : float, default=6.5
        Soil pH.
    nitrogen : float, default=0.3
        Soil nitrogen content [%]. Use :func:`nitrogen_mgkg_to_percent` for
        laboratory values in mg/kg.
    phosphorus : float, default=0.1
        Phosphorus content [%].
    potassium : float, default=0.2
        Potassium content [%].
    organic_matter : float, default=2.0
        Organic matter [%].
    water_content : float, default=25.0
        Volumetric water content [%].
    """

    ph: float = 6.5
    nitrogen: float = 0.3
    phosphorus: float = 0.1
    potassium: float = 0.2
    organic_matter: float = 2.0
    water_content: float = 25.0

    @classmethod
    def optimal(cls) -> "SoilState":
        """Soil used for the potential (optimal) yield simulation."""
        return cls(water_content=30.0)

    def copy(self) -> "SoilState":
        return replace(self)


# -------------------------
# State and outputs
# -------------------------


@dataclass
class SimulationState:
    """
    Mutable state of one crop simulation.

    Attributes
    ----------
    day : int
        Day index of the last simulated call.
    development_stage : float
        0 dry seed, 1 anthesis, 2 maturity.
    leaf_area_index : float
        Leaf area index [m² m⁻²].
    total_biomass : float
        Accumulated biomass; never decreases.
    grain_yield : float
        Harvestable yield from biomass and harvest index.
    root_depth : float
        Rooting depth.
    water_stress : float
        Water-stress factor in [0.1, 1.0].
    nitrogen_stress : float
        Nitrogen-stress factor in [0.3, 1.0].
    temperature, water, fertilizer, humidity, wind_speed : float
        Inputs applied on the last call.
    """

    day: int = 0
    development_stage: float = 0.0
    leaf_area_index: float = 0.0
    total_biomass: float = 0.0
    grain_yield: float = 0.0
    root_depth: float = 0.1
    water_stress: float = 1.0
    nitrogen_stress: float = 1.0
    temperature: float = 20.0
    water: float = 25.0
    fertilizer: float = 150.0
    humidity: float = 60.0
    wind_speed: float = 2.0

    def copy(self) -> "SimulationState":
        """Return an independent snapshot."""
        return replace(self)


@dataclass(frozen=True)
class StressIndicators:
    """Stress factors and risk derived from the current state."""

    water_stress: float
    nitrogen_stress: float
    temperature_stress: float
    humidity: float
    wind_speed: float
    disease_risk: str


@dataclass
class SeasonResults:
    """Simulation outputs, one entry per simulated day."""

    crop_name: str
    day: Array  # (T,) int
    development_stage: Array  # (T,)
    stage_code: Array  # (T,) str
    leaf_area_index: Array  # (T,)
    total_biomass: Array  # (T,)
    grain_yield: Array  # (T,)
    yield_prediction: Array  # (T,)
    root_depth: Array  # (T,)
    water_stress: Array  # (T,)
    nitrogen_stress: Array  # (T,)

    @classmethod
    def from_states(
        cls,
        crop_name: str,
        states: Sequence[SimulationState],
        codes: Sequence[str],
        yields: Sequence[float],
    ) -> "SeasonResults":
        """
        Stack per-day snapshots into arrays.

        Raises
        ------
        ValueError
            If ``states``, ``codes`` and ``yields`` differ in length.
        """
        if not (len(states) == len(codes) == len(yields)):
            raise ValueError("states, codes and yields must have equal length.")

        def col(name: str, dtype=float) -> Array:
            return np.array([getattr(s, name) for s in states], dtype=dtype)

        return cls(
            crop_name=crop_name,
            day=col("day", int),
            development_stage=col("development_stage"),
            stage_code=np.array(codes, dtype=str),
            leaf_area_index=col("leaf_area_index"),
            total_biomass=col("total_biomass"),
            grain_yield=col("grain_yield"),
            yield_prediction=np.asarray(yields, dtype=float),
            root_depth=col("root_depth"),
            water_stress=col("water_stress"),
            nitrogen_stress=col("nitrogen_stress"),
        )

    def __len__(self) -> int:
        return int(self.day.shape[0])

    @property
    def final_yield(self) -> float:
        """Yield prediction on the last simulated day (0 if empty)."""
        if len(self) == 0:
            return 0.0
        return float(self.yield_prediction[-1])

    def to_frame(self) -> pd.DataFrame:
        """Return the trajectory as a DataFrame indexed by day."""
        frame = pd.DataFrame(
            {
                "development_stage": self.development_stage,
                "stage_code": self.stage_code,
                "leaf_area_index": self.leaf_area_index,
                "total_biomass": self.total_biomass,
                "grain_yield": self.grain_yield,
                "yield_prediction": self.yield_prediction,
                "root_depth": self.root_depth,
                "water_stress": self.water_stress,
                "nitrogen_stress": self.nitrogen_stress,
            },
            index=pd.Index(self.day, name="day"),
        )
        frame.attrs["crop_name"] = self.crop_name
        return frame


__all__ = [
    "Environment",
    "SeasonResults",
    "SimulationState",
    "SoilState",
    "StressIndicators",
    "nitrogen_mgkg_to_percent",
]
