"""
Crop parameter presets and dataclass container.

This module provides a single, concrete dataclass :class:`CropProfile` that
encapsulates the physiological constants used by the growth simulator. The
class is **frozen** (immutable) and uses **slots** for memory efficiency.
Profiles are obtained from named presets; the set of crops is open and adding
a crop means adding a preset entry to :data:`PRESETS`.

The parameters follow the WOFOST naming convention for phenology (base and
maximum effective temperature, temperature sums), conversion efficiencies and
maintenance respiration, plus the canopy/yield constants shared by all crops
and the BBCH code at which the crop is considered harvest-ready.

Classes
-------
CropProfile
    Immutable container for crop parameters. Provides
    :meth:`CropProfile.from_preset` and one classmethod per preset.

Functions
---------
known_crops
    Sorted list of preset names.
default_profiles
    Mapping of every preset name to its :class:`CropProfile`.

Notes
-----
- **Temperature sums**: ``tsum1`` is counted from sowing (the vegetative
  regime spans ``[tsumem, tsum1)``) whereas ``tsum2`` is counted from
  anthesis (the reproductive regime spans ``[tsum1, tsum1 + tsum2)``).
- **Validation**: the constructor checks
  ``0 ≤ tbasem``, ``teffmx > 0``, ``0 < tsumem < tsum1``, ``tsum2 > 0``,
  conversion efficiencies in ``(0, 1]``, positive respiration terms and
  ``root_initial ≤ root_max``.
- Unknown preset names raise :class:`~phenoyield.core.errors.UnknownCropError`
  instead of silently falling back to cereals.

Examples
--------
>>> from phenoyield.core.crops import CropProfile
>>> cp = CropProfile.cereals()
>>> cp_cotton = CropProfile.from_preset("cotton")
>>> cp_cotton.ready_code
85
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from phenoyield.core.errors import UnknownCropError


@dataclass(frozen=True, slots=True)
class CropProfile:
    """
    Concrete crop parameter set (defaults to cereals).

    Parameters
    ----------
    crop_name : str, default="cereals"
        Crop identifier, also used as dispatch key in catalogs and tables.
    tbasem : float
        Base temperature below which no development happens [°C].
    teffmx : float
        Maximum effective temperature (temperature above ``tbasem``) that
        still contributes to development [°C].
    tsumem : float
        Temperature sum from sowing to emergence [°C day].
    tsum1 : float
        Temperature sum from sowing to anthesis [°C day].
    tsum2 : float
        Temperature sum from anthesis to maturity [°C day].
    span : float
        Life span of leaves [days].
    cvl, cvo, cvr, cvs : float
        Conversion efficiencies of assimilates into leaves, storage organs,
        roots and stems [kg kg⁻¹].
    q10 : float
        Relative increase of maintenance respiration per 10 °C.
    rml, rmo, rmr, rms : float
        Relative maintenance respiration of leaves, storage organs, roots and
        stems [kg CH2O kg⁻¹ day⁻¹].
    lai_max : float, default=6.0
        Leaf area index reached under no stress and ideal soil.
    kdif : float, default=0.65
        Extinction coefficient for light interception.
    amax : float, default=40.0
        Daily gross photosynthesis at full light interception.
    maintenance_rate : float, default=0.015
        Whole-plant maintenance respiration rate at 25 °C.
    harvest_index_max : float, default=0.5
        Harvest index reached at maturity.
    root_initial : float, default=0.1
        Rooting depth at sowing.
    root_max : float, default=1.5
        Rooting depth reached at anthesis.
    ready_code : int, default=87
        BBCH code from which the crop is ready for harvest.

    Raises
    ------
    ValueError
        If parameters are inconsistent (see module notes).
    """

    # --- Species ---
    crop_name: str = "cereals"

    # --- Phenology ---
    tbasem: float = 0.0
    teffmx: float = 30.0
    tsumem: float = 80.0
    tsum1: float = 800.0
    tsum2: float = 700.0
    span: float = 35.0

    # --- Conversion efficiencies ---
    cvl: float = 0.685
    cvo: float = 0.709
    cvr: float = 0.694
    cvs: float = 0.662

    # --- Maintenance respiration ---
    q10: float = 2.0
    rml: float = 0.030
    rmo: float = 0.015
    rmr: float = 0.015
    rms: float = 0.015

    # --- Canopy, biomass and yield (shared by all presets) ---
    lai_max: float = 6.0
    kdif: float = 0.65
    amax: float = 40.0
    maintenance_rate: float = 0.015
    harvest_index_max: float = 0.5

    # --- Roots ---
    root_initial: float = 0.1
    root_max: float = 1.5

    # --- Harvest ---
    ready_code: int = 87

    def __post_init__(self):
        """
        Run validations on phenology, efficiencies and canopy constants.

        Raises
        ------
        ValueError
            If any validation fails.
        """
        if self.tbasem < 0.0 or self.teffmx <= 0.0:
            raise ValueError("Temperatures must satisfy tbasem ≥ 0, teffmx > 0.")
        if not (0.0 < self.tsumem < self.tsum1):
            raise ValueError("Temperature sums must satisfy 0 < tsumem < tsum1.")
        if self.tsum2 <= 0.0:
            raise ValueError("tsum2 must be positive.")
        for v in (self.cvl, self.cvo, self.cvr, self.cvs):
            if not (0.0 < v <= 1.0):
                raise ValueError(
                    "Conversion efficiencies must be in (0, 1]."
                )
        if self.q10 <= 0.0 or self.maintenance_rate < 0.0:
            raise ValueError(
                "Respiration must have q10 > 0 and maintenance_rate ≥ 0."
            )
        if self.lai_max <= 0.0 or self.kdif <= 0.0 or self.amax <= 0.0:
            raise ValueError("lai_max, kdif and amax must be positive.")
        if not (0.0 <= self.harvest_index_max <= 1.0):
            raise ValueError("harvest_index_max must be in [0, 1].")
        if not (0.0 <= self.root_initial <= self.root_max):
            raise ValueError(
                "Root parameters must satisfy 0 ≤ root_initial ≤ root_max."
            )

    # -------------------------
    # Convenience constructors / presets
    # -------------------------
    @classmethod
    def cereals(cls) -> "CropProfile":
        """Return the wheat/barley parameter set."""
        return cls.from_preset("cereals")

    @classmethod
    def rice(cls) -> "CropProfile":
        """Return the rice parameter set."""
        return cls.from_preset("rice")

    @classmethod
    def maize(cls) -> "CropProfile":
        """Return the maize parameter set."""
        return cls.from_preset("maize")

    @classmethod
    def cotton(cls) -> "CropProfile":
        """Return the cotton parameter set."""
        return cls.from_preset("cotton")

    @classmethod
    def from_preset(cls, name: str) -> "CropProfile":
        """
        Instantiate from a named preset.

        Parameters
        ----------
        name : {'cereals', 'rice', 'maize', 'cotton'}
            Preset identifier.

        Returns
        -------
        CropProfile
            Parameter set for the given preset.

        Raises
        ------
        UnknownCropError
            If `name` is not a known preset.
        """
        try:
            return cls(**PRESETS[name])
        except KeyError as e:
            raise UnknownCropError(name, known=sorted(PRESETS)) from e


PRESETS: Mapping[str, dict] = {
    # cereals is the class default; listed for clarity
    "cereals": dict(crop_name="cereals"),
    "rice": dict(
        crop_name="rice",
        tbasem=10.0,
        teffmx=35.0,
        tsumem=100.0,
        tsum1=900.0,
        tsum2=800.0,
        span=40.0,
    ),
    "maize": dict(
        crop_name="maize",
        tbasem=8.0,
        teffmx=35.0,
        tsumem=90.0,
        tsum1=700.0,
        tsum2=600.0,
        span=30.0,
    ),
    "cotton": dict(
        crop_name="cotton",
        tbasem=12.0,
        teffmx=35.0,
        tsumem=120.0,
        tsum1=1000.0,
        tsum2=1200.0,
        span=45.0,
        # 50% of bolls open
        ready_code=85,
    ),
}


def known_crops() -> list[str]:
    """Return the sorted preset names."""
    return sorted(PRESETS)


def default_profiles() -> dict[str, CropProfile]:
    """Build one :class:`CropProfile` per preset, keyed by crop name."""
    return {name: CropProfile.from_preset(name) for name in PRESETS}
