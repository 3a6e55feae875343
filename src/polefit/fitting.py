"""Vector fitting pipeline and the stateful ``VectorFitting`` front end."""

from __future__ import annotations

import logging
import numbers
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Literal, Sequence, Tuple

import numpy as np

from polefit.errors import FitNotComputedError, InvalidInputError
from polefit.model import StateSpaceModel, fitted_samples, max_deviation, rmse
from polefit.options import AsymptoticTrend, FitOptions
from polefit.poles import (
    basis_multiplicity,
    classify_poles,
    initial_poles_for_samples,
    validate_poles,
)
from polefit.relocation import PoleStageResult, relocate_poles
from polefit.residues import ResidueStageResult, solve_residues
from polefit.samples import SampleSet, normalize_weights
from polefit.system import build_pole_identification_system

logger = logging.getLogger(__name__)


@dataclass
class FitResult:
    """Outcome of one fit pass."""

    model: StateSpaceModel
    rmse: float
    max_deviation: float
    diagnostics: dict[str, Any] = field(default_factory=dict)

    @property
    def poles(self) -> np.ndarray:
        return self.model.poles


def identify_poles(
    samples: SampleSet,
    poles: np.ndarray,
    options: FitOptions,
    weights: np.ndarray,
) -> PoleStageResult:
    """One relaxed pole relocation step."""
    tags = classify_poles(poles, options.real_tol)
    AA, bb = build_pole_identification_system(samples, poles, tags, options, weights)
    return relocate_poles(poles, tags, AA, bb, options)


def identify_residues(
    samples: SampleSet,
    poles: np.ndarray,
    options: FitOptions,
    weights: np.ndarray,
) -> ResidueStageResult:
    tags = classify_poles(poles, options.real_tol)
    return solve_residues(samples, poles, tags, options.asymptotic_trend, weights)


def empty_residues(n_channels: int, n_poles: int) -> ResidueStageResult:
    return ResidueStageResult(
        C=np.zeros((n_channels, n_poles), dtype=complex),
        D=np.zeros(n_channels, dtype=complex),
        E=np.zeros(n_channels, dtype=complex),
    )


def assemble_model(
    poles: np.ndarray,
    residues: ResidueStageResult,
    trend: AsymptoticTrend,
    tol: float = 1e-10,
) -> StateSpaceModel:
    tags = classify_poles(poles, tol)
    return StateSpaceModel(
        A=np.diag(np.asarray(poles, dtype=complex)),
        B=basis_multiplicity(tags),
        C=residues.C,
        D=residues.D,
        E=residues.E,
        trend=trend,
    )


def run_fit(
    samples: SampleSet,
    poles: np.ndarray,
    options: FitOptions,
    weights: np.ndarray | None = None,
) -> FitResult:
    """Pole identification followed by residue identification, each skippable."""
    poles = validate_poles(poles, options.real_tol)
    weights = normalize_weights(weights, samples)
    diagnostics: dict[str, Any] = {"initial_poles": poles.copy()}

    if options.skip_pole_identification:
        logger.debug("Skipping pole identification.")
    else:
        pole_stage = identify_poles(samples, poles, options, weights)
        poles = pole_stage.poles
        diagnostics["sigma_constant"] = pole_stage.sigma_constant
        diagnostics["sigma_residues"] = pole_stage.sigma_residues

    if options.skip_residue_identification:
        logger.debug("Skipping residue identification.")
        residues = empty_residues(samples.n_channels, poles.size)
    else:
        residues = identify_residues(samples, poles, options, weights)

    model = assemble_model(poles, residues, options.asymptotic_trend, options.real_tol)
    fit_rmse = rmse(model, samples)
    fit_max = max_deviation(model, samples)
    logger.info(
        "Vector fit: order=%d samples=%d channels=%d rmse=%.3e max_dev=%.3e",
        model.order,
        samples.n_samples,
        samples.n_channels,
        fit_rmse,
        fit_max,
    )
    return FitResult(model=model, rmse=fit_rmse, max_deviation=fit_max, diagnostics=diagnostics)


def _as_sample_set(samples: SampleSet | Iterable[Tuple[complex, Sequence[complex]]]) -> SampleSet:
    if isinstance(samples, SampleSet):
        return samples
    return SampleSet.from_pairs(samples)


class VectorFitting:
    """
    Fit a common-pole rational model to vector frequency responses.

    Each ``fit()`` call performs one pole relocation and replaces the stored
    poles, so repeated calls iterate the method.
    """

    def __init__(
        self,
        samples: SampleSet | Iterable[Tuple[complex, Sequence[complex]]],
        poles: Sequence[complex] | np.ndarray | int,
        options: FitOptions | None = None,
        weights: np.ndarray | None = None,
    ) -> None:
        self._samples = _as_sample_set(samples)
        self._options = options if options is not None else FitOptions()
        if isinstance(poles, numbers.Integral) and not isinstance(poles, bool):
            poles = initial_poles_for_samples(self._samples, int(poles))
        self._poles = validate_poles(poles, self._options.real_tol)
        self._weights = normalize_weights(weights, self._samples)
        self._result: FitResult | None = None

    @classmethod
    def from_order(
        cls,
        samples: SampleSet | Iterable[Tuple[complex, Sequence[complex]]],
        order: int,
        options: FitOptions | None = None,
        weights: np.ndarray | None = None,
        spacing: Literal["linear", "log"] = "linear",
    ) -> "VectorFitting":
        samples = _as_sample_set(samples)
        return cls(samples, initial_poles_for_samples(samples, order, spacing=spacing), options, weights)

    def fit(self) -> FitResult:
        result = run_fit(self._samples, self._poles, self._options, self._weights)
        self._poles = result.model.poles
        self._result = result
        return result

    def _require_result(self) -> FitResult:
        if self._result is None:
            raise FitNotComputedError("fit() must be called before querying the fitted model.")
        return self._result

    def get_poles(self) -> np.ndarray:
        return self._poles.copy()

    def get_residues(self) -> np.ndarray:
        return self._require_result().model.C.copy()

    def get_model(self) -> StateSpaceModel:
        return self._require_result().model

    def get_fitted_samples(self, s: np.ndarray | None = None) -> SampleSet:
        model = self._require_result().model
        return fitted_samples(model, self._samples.s if s is None else s)

    def get_rmse(self) -> float:
        return self._require_result().rmse

    def get_max_deviation(self) -> float:
        return self._require_result().max_deviation

    def get_order(self) -> int:
        return int(self._poles.size)

    def get_samples_size(self) -> int:
        return self._samples.n_samples

    def get_response_size(self) -> int:
        return self._samples.n_channels

    def get_options(self) -> FitOptions:
        return replace(self._options)

    def set_options(self, options: FitOptions) -> None:
        if not isinstance(options, FitOptions):
            raise InvalidInputError("options must be a FitOptions instance.")
        self._options = options
