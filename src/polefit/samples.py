"""Sample sets of complex frequency responses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence, Tuple

import numpy as np

from polefit.errors import InvalidInputError


@dataclass
class SampleSet:
    """Complex frequencies ``s`` (Ns,) and responses (Ns, Nc)."""

    s: np.ndarray
    response: np.ndarray

    def __post_init__(self) -> None:
        s = np.asarray(self.s, dtype=complex)
        response = np.asarray(self.response, dtype=complex)
        if s.ndim != 1:
            raise InvalidInputError("s must be a 1D array.")
        if s.size == 0:
            raise InvalidInputError("At least one sample is required.")
        if response.ndim == 1:
            response = response.reshape(-1, 1)
        if response.ndim != 2 or response.shape[0] != s.shape[0]:
            raise InvalidInputError("response must have shape (n_samples, n_channels).")
        if response.shape[1] == 0:
            raise InvalidInputError("Responses must have at least one channel.")
        if not np.isfinite(s).all():
            raise InvalidInputError("s must be finite.")
        if not np.isfinite(response).all():
            raise InvalidInputError("response must be finite.")
        self.s = s
        self.response = response

    @staticmethod
    def from_pairs(pairs: Iterable[Tuple[complex, Sequence[complex]]]) -> "SampleSet":
        """Build a sample set from ``(s, response)`` pairs of equal width."""
        pairs = list(pairs)
        if not pairs:
            raise InvalidInputError("At least one sample is required.")
        widths = {len(np.atleast_1d(response)) for _, response in pairs}
        if len(widths) != 1:
            raise InvalidInputError(
                f"All samples must share one response width, got {sorted(widths)}."
            )
        s = np.array([complex(point) for point, _ in pairs], dtype=complex)
        response = np.array([np.atleast_1d(r) for _, r in pairs], dtype=complex)
        return SampleSet(s=s, response=response)

    @property
    def n_samples(self) -> int:
        return int(self.s.shape[0])

    @property
    def n_channels(self) -> int:
        return int(self.response.shape[1])

    def imag_range(self) -> tuple[float, float]:
        """Return (min, max) of Im(s) regardless of sample ordering."""
        imag = self.s.imag
        return float(np.min(imag)), float(np.max(imag))

    def __len__(self) -> int:
        return self.n_samples

    def __iter__(self) -> Iterator[Tuple[complex, np.ndarray]]:
        for point, response in zip(self.s, self.response):
            yield complex(point), response.copy()


def normalize_weights(weights: np.ndarray | None, samples: SampleSet) -> np.ndarray:
    """
    Return an (Ns, Nc) weight matrix, defaulting to ones.

    A flat vector is only accepted for single-channel samples.
    """
    shape = (samples.n_samples, samples.n_channels)
    if weights is None:
        return np.ones(shape, dtype=float)
    try:
        weights = np.asarray(weights)
    except ValueError as exc:
        raise InvalidInputError(f"weights must be a dense {shape} matrix: {exc}") from exc
    if weights.dtype == object:
        raise InvalidInputError(f"weights must be a dense {shape} matrix.")
    if np.iscomplexobj(weights):
        raise InvalidInputError("weights must be real.")
    weights = weights.astype(float)
    if weights.ndim == 1 and samples.n_channels == 1:
        weights = weights.reshape(-1, 1)
    if weights.shape != shape:
        raise InvalidInputError(f"weights must have shape {shape}, got {weights.shape}.")
    if not np.isfinite(weights).all() or np.any(weights < 0.0):
        raise InvalidInputError("weights must be finite and non-negative.")
    return weights
