import numpy as np
import pytest

from phenoyield.core.catalog import StageCatalog, parse_code
from phenoyield.core.classifier import (
    BREAKPOINTS,
    CEREAL_BREAKPOINTS,
    TERMINAL_CODE,
    breakpoints_for,
    classify,
)
from phenoyield.core.errors import UnknownCropError


def test_classify_endpoints():
    assert classify(0.0) == "00"
    assert classify(2.5) == "99"


@pytest.mark.parametrize(
    "dvs, code",
    [(0.005, "00"), (0.01, "01"), (0.09, "10"), (0.62, "21"), (0.99, "45"),
     (1.0, "51"), (1.95, "87"), (2.0, "89"), (2.19, "92"), (2.2, "99")],
)
def test_classify_cereal_table(dvs, code):
    assert classify(dvs) == code
    assert classify(dvs, CEREAL_BREAKPOINTS) == code


@pytest.mark.parametrize("crop", sorted(BREAKPOINTS))
def test_tables_are_ascending(crop):
    bounds = [upper for upper, _ in breakpoints_for(crop)]
    codes = [parse_code(c) for _, c in breakpoints_for(crop)]
    assert np.all(np.diff(bounds) > 0)
    assert np.all(np.diff(codes) > 0)


@pytest.mark.parametrize("crop", sorted(BREAKPOINTS))
def test_codes_exist_in_catalog(crop):
    stages = StageCatalog.default().stages_for(crop)
    for _, code in breakpoints_for(crop):
        assert code in stages, f"{crop} {code}"
    assert TERMINAL_CODE in stages


@pytest.mark.parametrize("crop", sorted(BREAKPOINTS))
def test_classified_code_non_decreasing(crop):
    table = breakpoints_for(crop)
    codes = [parse_code(classify(x, table)) for x in np.linspace(0.0, 2.5, 501)]
    assert np.all(np.diff(codes) >= 0)


def test_maize_skips_tillering():
    codes = {code for _, code in breakpoints_for("maize")}
    assert not any(c.startswith("2") for c in codes)
    assert classify(0.62, breakpoints_for("maize")) == "30"


def test_cotton_ripening_codes():
    table = breakpoints_for("cotton")
    assert classify(1.95, table) == "85"
    assert classify(2.05, table) == "89"


def test_unknown_crop_table():
    with pytest.raises(UnknownCropError):
        breakpoints_for("quinoa")
