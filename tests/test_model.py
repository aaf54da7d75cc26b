import numpy as np
import numpy.testing as npt
import pandas as pd
import pytest

from phenoyield.core.crops import CropProfile, known_crops
from phenoyield.core.data_containers import (
    Environment,
    SeasonResults,
    SimulationState,
    SoilState,
    nitrogen_mgkg_to_percent,
)
from phenoyield.core.model import MAX_SEASON_DAYS, GrowthSimulator

ATOL = 1e-9
RTOL = 1e-7

# cereals reference scenario: ws = 0.55, ns = 0.7667, damping 0.775
SCENARIO = Environment(temperature=25.0, water=20.0, fertilizer=150.0)


def _sim(crop="cereals", **kwargs) -> GrowthSimulator:
    return GrowthSimulator(profile=CropProfile.from_preset(crop), **kwargs)


def _random_inputs(rng, days):
    return dict(
        temperature=rng.uniform(-5.0, 45.0, days),
        water=rng.uniform(0.0, 60.0, days),
        fertilizer=rng.uniform(0.0, 300.0, days),
        humidity=rng.uniform(0.0, 100.0, days),
        wind_speed=rng.uniform(0.0, 12.0, days),
    )


# -------------------------
# Development stage
# -------------------------


@pytest.mark.parametrize("crop", known_crops())
def test_stage_non_decreasing_constant_inputs(crop):
    sim = _sim(crop)
    stages = [sim.step(day, SCENARIO).development_stage for day in range(200)]
    assert np.all(np.diff(stages) >= 0.0)
    assert stages[0] == 0.0
    assert stages[-1] <= 2.0


@pytest.mark.parametrize("crop", known_crops())
def test_stage_non_decreasing_improving_inputs(crop):
    sim = _sim(crop)
    days = 150
    temps = np.linspace(15.0, 30.0, days)
    water = np.linspace(10.0, 30.0, days)
    fert = np.linspace(50.0, 200.0, days)
    stages = [
        sim.simulate(d, temps[d], water[d], fert[d], 60.0, 2.0).development_stage
        for d in range(days)
    ]
    assert np.all(np.diff(stages) >= 0.0)


def test_stage_regimes_cereals():
    cp = CropProfile.cereals()
    dev = GrowthSimulator._development_stage
    # 25 °C, no stress: heat = 25 * day
    npt.assert_allclose(dev(25.0, 0, 1.0, cp), 0.0)
    npt.assert_allclose(dev(25.0, 2, 1.0, cp), 0.09 * 50 / 80)
    npt.assert_allclose(dev(25.0, 32, 1.0, cp), 1.0)
    npt.assert_allclose(dev(25.0, 46, 1.0, cp), 1.5)
    npt.assert_allclose(dev(25.0, 100, 1.0, cp), 2.0)
    # half-speed at the stress floor of the damping term
    npt.assert_allclose(dev(25.0, 64, 0.0, cp), 1.0)


def test_effective_temperature_bounds():
    cp = CropProfile.maize()
    dev = GrowthSimulator._development_stage
    assert dev(cp.tbasem - 3.0, 50, 1.0, cp) == 0.0
    # capped at teffmx
    npt.assert_allclose(
        dev(cp.tbasem + 60.0, 10, 1.0, cp), dev(cp.tbasem + cp.teffmx, 10, 1.0, cp)
    )


def test_stage_damped_by_current_stress():
    sim = _sim()
    first = sim.step(10, SCENARIO)
    # heat = 25 * 10 * (0.5 + 0.5 * 0.55)
    npt.assert_allclose(
        first.development_stage, 0.09 + (193.75 - 80) / 720 * 0.91, rtol=RTOL
    )
    npt.assert_allclose(first.water_stress, 0.55, rtol=RTOL)
    second = sim.step(10, SCENARIO)
    npt.assert_allclose(second.development_stage, first.development_stage)


def test_stage_independent_of_history():
    fresh = _sim().step(30, SCENARIO)
    sim = _sim()
    sim.step(29, Environment(temperature=25.0, water=30.0, fertilizer=200.0))
    after = sim.step(30, SCENARIO)
    npt.assert_allclose(after.development_stage, fresh.development_stage)


@pytest.mark.parametrize("crop", known_crops())
def test_stage_non_decreasing_from_late_start(crop):
    sim = _sim(crop)
    stages = [
        sim.simulate(day, 25.0, 20.0, 150.0, 60.0, 2.0).development_stage
        for day in range(10, 20)
    ]
    assert np.all(np.diff(stages) >= 0.0)
    assert stages[-1] > stages[0]


def test_reference_scenario_reaches_ripening():
    sim = _sim()
    for day in range(161):
        sim.step(day, SCENARIO)
    assert int(sim.stage_code()) >= 87
    assert sim.is_mature()


def test_stage_code_after_sixty_days():
    sim = _sim()
    for day in range(60):
        sim.simulate(day, 25.0, 20.0, 150.0, 60.0, 2.0)
    assert sim.stage_code() == "73"


# -------------------------
# Stress, canopy, biomass, yield
# -------------------------


def test_low_fertilizer_keeps_nitrogen_stress_at_floor():
    sim = _sim()
    for day in range(120):
        snap = sim.simulate(day, 25.0, 25.0, 30.0, 60.0, 2.0)
        assert snap.nitrogen_stress == pytest.approx(0.3)


@pytest.mark.parametrize("crop", known_crops())
@pytest.mark.parametrize("seed", [0, 7, 42])
def test_biomass_non_decreasing_random_inputs(crop, seed):
    rng = np.random.default_rng(seed)
    days = 200
    inputs = _random_inputs(rng, days)
    sim = _sim(crop)
    biomass = [
        sim.simulate(
            d,
            inputs["temperature"][d],
            inputs["water"][d],
            inputs["fertilizer"][d],
            inputs["humidity"][d],
            inputs["wind_speed"][d],
            soil_ph=rng.uniform(4.0, 9.0),
            soil_nitrogen=rng.uniform(0.0, 0.5),
        ).total_biomass
        for d in range(days)
    ]
    assert np.all(np.diff(biomass) >= 0.0)


def test_biomass_non_decreasing_degrading_inputs():
    sim = _sim()
    biomass = []
    for day in range(120):
        frac = day / 119
        snap = sim.simulate(
            day, 25.0 + 15.0 * frac, 30.0 - 25.0 * frac, 200.0 - 180.0 * frac,
            60.0, 2.0,
        )
        biomass.append(snap.total_biomass)
    assert np.all(np.diff(biomass) >= 0.0)


@pytest.mark.parametrize("crop", known_crops())
def test_no_yield_before_anthesis(crop):
    sim = _sim(crop)
    for day in range(MAX_SEASON_DAYS):
        snap = sim.step(day, Environment(temperature=22.0, water=28.0, fertilizer=180.0))
        if snap.development_stage < 1.0:
            assert snap.grain_yield == 0.0
            assert sim.yield_prediction() == 0.0
        else:
            assert snap.grain_yield >= 0.0
    assert sim.yield_prediction() > 0.0


def test_early_canopy_and_seed_biomass():
    sim = _sim()
    snap = sim.step(2, SCENARIO)
    assert snap.development_stage < 0.1
    assert snap.leaf_area_index == 0.0
    assert snap.total_biomass == pytest.approx(0.1)


def test_leaf_area_index_shape():
    cp = CropProfile.cereals()
    lai = GrowthSimulator._leaf_area_index
    npt.assert_allclose(lai(0.55, 1.0, cp), cp.lai_max)
    npt.assert_allclose(lai(1.2, 0.5, cp), 0.5 * cp.lai_max)
    npt.assert_allclose(lai(1.75, 1.0, cp), 0.5 * cp.lai_max)
    assert lai(2.0, 1.0, cp) == 0.0


def test_root_depth():
    cp = CropProfile.cereals()
    root = GrowthSimulator._root_depth
    npt.assert_allclose(root(0.0, cp), cp.root_initial)
    npt.assert_allclose(root(0.5, cp), 0.8)
    assert root(1.2, cp) == cp.root_max


def test_soil_inputs_override_and_penalise():
    good, poor = _sim(), _sim()
    for day in range(40):
        g = good.step(day, SCENARIO)
        p = poor.step(day, SCENARIO, soil_ph=4.0, soil_nitrogen=0.05)
    assert poor.soil.ph == 4.0
    assert poor.soil.nitrogen == 0.05
    npt.assert_allclose(p.leaf_area_index, 0.3 * 0.3 * g.leaf_area_index, rtol=RTOL)
    assert p.total_biomass < g.total_biomass


def test_yield_prediction_modifiers():
    sim = _sim()
    for day in range(60):
        sim.step(day, SCENARIO)
    base = sim.yield_prediction()
    st = sim.state
    expected = st.total_biomass * 10 * 0.45 * st.water_stress * st.nitrogen_stress
    npt.assert_allclose(base, expected * 1.05, rtol=RTOL)

    st.humidity = 85.0
    npt.assert_allclose(sim.yield_prediction(), expected * 0.9 * 1.05, rtol=RTOL)
    st.humidity, st.wind_speed = 60.0, 9.0
    npt.assert_allclose(sim.yield_prediction(), expected * 0.9, rtol=RTOL)


# -------------------------
# Projections
# -------------------------


def test_optimal_yield_is_side_effect_free():
    sim = _sim()
    for day in range(40):
        sim.step(day, SCENARIO, soil_ph=5.0)
    state_before = sim.state.copy()
    soil_before = sim.soil.copy()

    potential = sim.optimal_yield_prediction()

    assert sim.state == state_before
    assert sim.soil == soil_before
    assert potential > 0.0
    assert sim.optimal_yield_prediction() == potential


@pytest.mark.parametrize("crop", known_crops())
def test_optimal_yield_reaches_maturity(crop):
    potential = _sim(crop).optimal_yield_prediction()
    result = _sim(crop, soil=SoilState.optimal()).run_season(Environment.optimal())
    assert result.development_stage[-1] >= 2.0
    npt.assert_allclose(potential, result.final_yield, rtol=RTOL)


def test_run_season_stops_at_maturity():
    sim = _sim()
    result = sim.run_season(SCENARIO)
    assert len(result) == 79
    assert result.day[-1] == 78
    assert result.development_stage[-2] < 2.0 <= result.development_stage[-1]
    assert result.stage_code[-1] == "89"
    # live simulator untouched
    assert sim.state == SimulationState()


def test_run_season_respects_cap():
    result = _sim().run_season(Environment(temperature=6.0, water=20.0, fertilizer=150.0), max_days=30)
    assert len(result) == 30
    assert result.development_stage[-1] < 2.0


def test_run_until_custom_stop():
    sim = _sim()
    result = sim.run_until(5, SCENARIO, stop=lambda s: s.state.development_stage >= 1.0)
    # heat 19.375 * day reaches tsum1 = 800 on day 42
    assert result.day[0] == 5
    assert result.day[-1] == 42
    assert result.development_stage[-2] < 1.0 <= result.development_stage[-1]
    assert sim.state.day == 42



def test_project_yield_continues_from_copy():
    sim = _sim()
    for day in range(50):
        sim.step(day, SCENARIO)
    before = sim.state.copy()
    proj = sim.project_yield(50, SCENARIO, horizon=20)
    assert sim.state == before
    assert proj.day[0] == 50
    assert len(proj) == 20
    assert np.all(np.diff(proj.total_biomass) >= 0.0)
    assert proj.total_biomass[0] >= before.total_biomass


def test_copy_is_independent():
    sim = _sim()
    sim.step(30, SCENARIO)
    other = sim.copy()
    other.step(60, SCENARIO, soil_ph=4.0)
    assert sim.state.day == 30
    assert sim.soil.ph == 6.5


def test_reset_keeps_soil():
    sim = _sim()
    sim.step(40, SCENARIO, soil_ph=7.5)
    sim.reset()
    assert sim.state == SimulationState()
    assert sim.soil.ph == 7.5


# -------------------------
# Indicators and advisories
# -------------------------


def test_stress_indicators():
    sim = _sim()
    sim.simulate(10, 25.0, 20.0, 150.0, 85.0, 6.0)
    ind = sim.stress_indicators()
    assert ind.temperature_stress == 1.0
    assert ind.humidity == 85.0
    assert ind.wind_speed == 6.0
    assert ind.disease_risk == "high"
    assert ind.nitrogen_stress == pytest.approx(0.3 + 0.7 * 100 / 150)
    assert sim.irrigation_recommendation().startswith("Reduce")
    assert "caution" in sim.fertilizer_recommendation()
    assert "fungicides" in sim.disease_prevention_recommendation()


# -------------------------
# Containers
# -------------------------


def test_environment_validation():
    with pytest.raises(ValueError):
        Environment(temperature=20.0, water=10.0, fertilizer=100.0, humidity=120.0)
    with pytest.raises(ValueError):
        Environment(temperature=20.0, water=-1.0, fertilizer=100.0)
    env = Environment.optimal()
    assert env.as_kwargs() == dict(
        temperature=28.0, water=30.0, fertilizer=200.0, humidity=60.0, wind_speed=2.0
    )


def test_nitrogen_unit_conversion():
    assert nitrogen_mgkg_to_percent(3000) == pytest.approx(0.3)
    assert nitrogen_mgkg_to_percent(0) == 0.0


def test_season_results_frame():
    result = _sim("maize").run_season(SCENARIO, max_days=25)
    frame = result.to_frame()
    assert isinstance(frame, pd.DataFrame)
    assert frame.index.name == "day"
    assert frame.attrs["crop_name"] == "maize"
    assert list(frame.index) == list(range(25))
    assert frame["stage_code"].iloc[0] == "00"
    npt.assert_allclose(frame["total_biomass"].to_numpy(), result.total_biomass)


def test_season_results_length_mismatch():
    with pytest.raises(ValueError):
        SeasonResults.from_states("cereals", [SimulationState()], [], [0.0])
    empty = SeasonResults.from_states("cereals", [], [], [])
    assert len(empty) == 0
    assert empty.final_yield == 0.0
