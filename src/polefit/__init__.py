"""polefit: relaxed vector fitting of frequency-domain responses."""

from polefit.errors import (
    BrokenInvariantError,
    FitNotComputedError,
    InvalidInputError,
    OptionsFileError,
    UnpairedPoleError,
    UnsupportedConfigurationError,
)
from polefit.fitting import (
    FitResult,
    VectorFitting,
    assemble_model,
    identify_poles,
    identify_residues,
    run_fit,
)
from polefit.macromodel_io import format_pole_residue_text, load_model_json, save_model_json
from polefit.model import StateSpaceModel, fitted_samples, max_deviation, rmse
from polefit.options import AsymptoticTrend, FitOptions, load_options_yaml
from polefit.poles import PoleTag, canonical_order, classify_poles, initial_poles, initial_poles_for_samples
from polefit.relocation import PoleStageResult
from polefit.residues import ResidueStageResult
from polefit.samples import SampleSet

__all__ = [
    "BrokenInvariantError",
    "FitNotComputedError",
    "InvalidInputError",
    "OptionsFileError",
    "UnpairedPoleError",
    "UnsupportedConfigurationError",
    "FitResult",
    "VectorFitting",
    "assemble_model",
    "identify_poles",
    "identify_residues",
    "run_fit",
    "format_pole_residue_text",
    "load_model_json",
    "save_model_json",
    "StateSpaceModel",
    "fitted_samples",
    "max_deviation",
    "rmse",
    "AsymptoticTrend",
    "FitOptions",
    "load_options_yaml",
    "PoleTag",
    "canonical_order",
    "classify_poles",
    "initial_poles",
    "initial_poles_for_samples",
    "PoleStageResult",
    "ResidueStageResult",
    "SampleSet",
]
