"""
Stress and response kernels shared by the growth simulator and predictors.

All functions are stateless and piecewise: linear ramps are expressed with
:func:`numpy.interp` over their breakpoints, tiered penalties with
:func:`numpy.searchsorted` over their thresholds. Scalars in, floats out.

Functions
---------
temperature_response
    Photosynthesis/development response to air temperature.
evaporation_factor
    Multiplier on the optimal water level from wind and humidity.
water_stress
    Continuous water-stress factor in [0.1, 1.0].
nitrogen_stress
    Continuous nitrogen-stress factor in [0.3, 1.0].
soil_ph_effect, soil_nitrogen_effect
    Tiered soil penalties.
light_interception
    Fraction of light intercepted by the canopy.
discrete_stress_effect
    Coarse development-speed multiplier used for harvest timing.
"""

from __future__ import annotations

import numpy as np

OPTIMAL_WATER = 30.0  # mm/week
MIN_WATER = 10.0
OPTIMAL_FERTILIZER = 200.0  # kg/ha
MIN_FERTILIZER = 50.0
OPTIMAL_PH = 6.5

_TEMP_XP = np.array([5.0, 15.0, 25.0, 35.0, 45.0])
_TEMP_FP = np.array([0.0, 0.5, 1.0, 1.0, 0.2])

# pH: upper bounds (inclusive) of |pH - 6.5| per tier
_PH_DEVIATION_EDGES = np.array([0.5, 1.0, 1.5, 2.0])
_PH_EFFECTS = np.array([1.0, 0.85, 0.7, 0.5, 0.3])

# soil nitrogen [%]: lower bounds (inclusive) per tier
_N_EDGES = np.array([0.1, 0.2, 0.3])
_N_EFFECTS = np.array([0.3, 0.5, 0.75, 1.0])


def temperature_response(temperature: float) -> float:
    """
    Piecewise-linear temperature response in [0, 1].

    0 below 5 °C, 0.5 at 15 °C, 1.0 between 25 and 35 °C, decaying to a
    floor of 0.2 at 45 °C and beyond.
    """
    return float(
        np.interp(float(temperature), _TEMP_XP, _TEMP_FP, left=0.0, right=0.2)
    )


def evaporation_factor(humidity: float, wind_speed: float) -> float:
    """Wind above 5 m/s raises evaporation, humidity above 80 % lowers it."""
    factor = 1.0
    if wind_speed > 5:
        factor += 0.2
    if humidity > 80:
        factor -= 0.2
    return factor


def water_stress(water: float, humidity: float, wind_speed: float) -> float:
    """
    Water-stress factor in [0.1, 1.0].

    Ramps linearly from 0.1 at ``MIN_WATER`` to 1.0 at the optimal water level
    scaled by :func:`evaporation_factor`; clamped outside the ramp.

    Parameters
    ----------
    water : float
        Water supply [mm/week].
    humidity : float
        Relative humidity [%].
    wind_speed : float
        Wind speed [m/s].

    Returns
    -------
    float
        Stress factor, 1.0 meaning no stress.
    """
    optimal = OPTIMAL_WATER * evaporation_factor(humidity, wind_speed)
    return float(np.interp(float(water), [MIN_WATER, optimal], [0.1, 1.0]))


def nitrogen_stress(fertilizer: float) -> float:
    """Nitrogen-stress factor, 0.3 at ≤50 kg/ha up to 1.0 at ≥200 kg/ha."""
    return float(
        np.interp(
            float(fertilizer), [MIN_FERTILIZER, OPTIMAL_FERTILIZER], [0.3, 1.0]
        )
    )


def soil_ph_effect(ph: float) -> float:
    """
    Multiplicative penalty for soil pH away from 6.5.

    Deviation ≤0.5 → 1.0, ≤1.0 → 0.85, ≤1.5 → 0.7, ≤2.0 → 0.5, else 0.3.
    """
    deviation = abs(float(ph) - OPTIMAL_PH)
    idx = np.searchsorted(_PH_DEVIATION_EDGES, deviation, side="left")
    return float(_PH_EFFECTS[idx])


def soil_nitrogen_effect(nitrogen: float) -> float:
    """
    Multiplicative penalty for soil nitrogen deficiency.

    Content [%] ≥0.3 → 1.0, ≥0.2 → 0.75, ≥0.1 → 0.5, else 0.3.
    """
    idx = np.searchsorted(_N_EDGES, float(nitrogen), side="right")
    return float(_N_EFFECTS[idx])


def light_interception(lai: float, kdif: float = 0.65) -> float:
    """Beer's law interception ``1 - exp(-kdif * LAI)``."""
    return float(-np.expm1(-kdif * float(lai)))


def discrete_stress_effect(
    temperature: float, water: float, fertilizer: float
) -> float:
    """
    Coarse development-speed multiplier used for harvest timing.

    Each factor is either 1.0 or a fixed penalty: water below 20 mm/week
    (0.7), temperature outside [15, 35] °C (0.8), fertilizer below
    100 kg/ha (0.8). Independent of the continuous ramps used by
    the growth simulator.
    """
    water_f = 0.7 if water < 20 else 1.0
    temp_f = 0.8 if (temperature < 15 or temperature > 35) else 1.0
    nutrient_f = 0.8 if fertilizer < 100 else 1.0
    return water_f * temp_f * nutrient_f
