"""
phenoyield: BBCH crop growth simulation and harvest prediction.

Subpackages
-----------
core
    Crop profiles, the growth simulator, stage classification, the BBCH
    catalog, monotonic stage tracking, harvest prediction and sessions.
library
    Stateless stress kernels and advisory rules.
"""

import logging

from phenoyield.core.catalog import StageCatalog, StageCatalogEntry, StageCategory
from phenoyield.core.classifier import classify
from phenoyield.core.crops import CropProfile
from phenoyield.core.data_containers import (
    Environment,
    SeasonResults,
    SimulationState,
    SoilState,
    StressIndicators,
)
from phenoyield.core.errors import PhenoyieldError, UnknownCropError
from phenoyield.core.harvest import HarvestPrediction, HarvestPredictor
from phenoyield.core.model import GrowthSimulator
from phenoyield.core.session import SimulationSession, StageReport
from phenoyield.core.tracker import StageTracker

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "CropProfile",
    "Environment",
    "GrowthSimulator",
    "HarvestPrediction",
    "HarvestPredictor",
    "PhenoyieldError",
    "SeasonResults",
    "SimulationSession",
    "SimulationState",
    "SoilState",
    "StageCatalog",
    "StageCatalogEntry",
    "StageCategory",
    "StageReport",
    "StageTracker",
    "StressIndicators",
    "UnknownCropError",
    "classify",
]
