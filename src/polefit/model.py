"""Fitted pole-residue models in state-space form and their error metrics."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np

from polefit.errors import InvalidInputError
from polefit.options import AsymptoticTrend
from polefit.samples import SampleSet


def _complex_to_json(value: complex) -> dict[str, float]:
    return {"real": float(np.real(value)), "imag": float(np.imag(value))}


def _json_to_complex(data: dict[str, Any]) -> complex:
    return complex(float(data["real"]), float(data["imag"]))


@dataclass
class StateSpaceModel:
    """
    ``f(s) = sum_n C[:, n] / (s - A[n, n]) + D + s E`` with diagonal ``A``.

    ``B`` marks which poles carry an independent basis column: 1 for real and
    first-of-pair poles, 0 for the conjugate partner.
    """

    A: np.ndarray
    B: np.ndarray
    C: np.ndarray
    D: np.ndarray
    E: np.ndarray
    trend: AsymptoticTrend = AsymptoticTrend.CONSTANT
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.A = np.asarray(self.A, dtype=complex)
        self.B = np.asarray(self.B, dtype=int).reshape(-1)
        self.C = np.atleast_2d(np.asarray(self.C, dtype=complex))
        self.D = np.asarray(self.D, dtype=complex).reshape(-1)
        self.E = np.asarray(self.E, dtype=complex).reshape(-1)
        self.trend = AsymptoticTrend(self.trend)
        if self.A.ndim != 2 or self.A.shape[0] != self.A.shape[1]:
            raise InvalidInputError("A must be a square matrix.")
        n_poles = self.A.shape[0]
        if self.B.shape != (n_poles,):
            raise InvalidInputError("B must have one entry per pole.")
        if self.C.shape[1] != n_poles:
            raise InvalidInputError("C must have one column per pole.")
        n_channels = self.C.shape[0]
        if self.D.shape != (n_channels,) or self.E.shape != (n_channels,):
            raise InvalidInputError("D and E must have one entry per channel.")

    @property
    def poles(self) -> np.ndarray:
        return np.diag(self.A).copy()

    @property
    def order(self) -> int:
        return int(self.A.shape[0])

    @property
    def n_channels(self) -> int:
        return int(self.C.shape[0])

    def evaluate(self, s: np.ndarray) -> np.ndarray:
        """Model response at ``s``, shape (len(s), Nc)."""
        s = np.atleast_1d(np.asarray(s, dtype=complex))
        basis = 1.0 / (s[:, None] - self.poles[None, :])
        return basis @ self.C.T + self.D[None, :] + s[:, None] * self.E[None, :]

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "poles": [_complex_to_json(pole) for pole in self.poles],
            "B": [int(b) for b in self.B],
            "C": [[_complex_to_json(value) for value in row] for row in self.C],
            "D": [_complex_to_json(value) for value in self.D],
            "E": [_complex_to_json(value) for value in self.E],
            "trend": self.trend.value,
            "metadata": dict(self.metadata),
        }

    @staticmethod
    def from_json_dict(data: dict[str, Any]) -> "StateSpaceModel":
        poles = np.array([_json_to_complex(item) for item in data["poles"]], dtype=complex)
        C = np.array(
            [[_json_to_complex(item) for item in row] for row in data["C"]], dtype=complex
        ).reshape(-1, poles.size)
        return StateSpaceModel(
            A=np.diag(poles),
            B=np.array(data["B"], dtype=int),
            C=C,
            D=np.array([_json_to_complex(item) for item in data["D"]], dtype=complex),
            E=np.array([_json_to_complex(item) for item in data["E"]], dtype=complex),
            trend=AsymptoticTrend(data.get("trend", AsymptoticTrend.CONSTANT.value)),
            metadata=dict(data.get("metadata", {})),
        )


def fitted_samples(model: StateSpaceModel, s: np.ndarray) -> SampleSet:
    """Evaluate the model at ``s`` and package the result as samples."""
    s = np.atleast_1d(np.asarray(s, dtype=complex))
    return SampleSet(s=s, response=model.evaluate(s))


def _deviation(model: StateSpaceModel, samples: SampleSet) -> np.ndarray:
    if model.n_channels != samples.n_channels:
        raise InvalidInputError(
            f"Model has {model.n_channels} channel(s) but samples have {samples.n_channels}."
        )
    return np.abs(model.evaluate(samples.s) - samples.response)


def rmse(model: StateSpaceModel, samples: SampleSet) -> float:
    """Root-mean-square error over all samples and channels."""
    diff = _deviation(model, samples)
    return float(np.sqrt(np.sum(diff**2)) / np.sqrt(diff.size))


def max_deviation(model: StateSpaceModel, samples: SampleSet) -> float:
    """Largest absolute deviation over all samples and channels."""
    return float(np.max(_deviation(model, samples)))
