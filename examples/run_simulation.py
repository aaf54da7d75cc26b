import logging
from pprint import pprint

import numpy as np
import pandas as pd

from phenoyield import Environment, SimulationSession
from phenoyield.core.crops import known_crops

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")


# -----------------------------
# Helper functions
# -----------------------------

def synthetic_weather(days: int, seed: int = 0) -> pd.DataFrame:
    """Daily temperature, water and humidity around a mild season."""
    rng = np.random.default_rng(seed)
    t = np.arange(days)
    return pd.DataFrame(
        {
            "temperature": 22.0 + 5.0 * np.sin(2 * np.pi * t / 120) + rng.normal(0, 1.5, days),
            "water": np.clip(rng.normal(24.0, 6.0, days), 0.0, None),
            "humidity": np.clip(rng.normal(65.0, 10.0, days), 0.0, 100.0),
        },
        index=pd.Index(t, name="day"),
    )


def run_crop(session: SimulationSession, crop: str, weather: pd.DataFrame) -> pd.DataFrame:
    """Query the session once per day and collect the reported stages."""
    rows = []
    for day, w in weather.iterrows():
        report = session.current_stage(
            crop,
            int(day),
            temperature=w.temperature,
            water=w.water,
            fertilizer=150.0,
            humidity=w.humidity,
        )
        rows.append(
            {
                "day": int(day),
                "code": report.code,
                "description": report.description,
                "fallback": report.fallback,
                "biomass": report.state.total_biomass,
            }
        )
    return pd.DataFrame(rows).set_index("day")


# -----------------------------
# Run simulation
# -----------------------------
days = 120
weather = synthetic_weather(days)
session = SimulationSession()

for crop in known_crops():
    trace = run_crop(session, crop, weather)
    print(f"\n{crop}: last stages")
    print(trace.tail(5))

    last = weather.iloc[-1]
    harvest = session.predict_harvest(
        crop, days - 1, last.temperature, last.water, 150.0, last.humidity
    )
    pprint(harvest)

# -----------------------------
# Constant-input progression
# -----------------------------
progression = session.stage_progression(
    "cereals", Environment(temperature=25.0, water=20.0, fertilizer=150.0)
)
print(progression[["development_stage", "stage_code", "yield_prediction"]].tail())
