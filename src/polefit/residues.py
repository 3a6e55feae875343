"""Residue identification with fixed poles."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from polefit.linalg import scaled_lstsq
from polefit.options import AsymptoticTrend
from polefit.poles import PoleTag, combine_pair_coefficients
from polefit.samples import SampleSet
from polefit.system import build_residue_system

logger = logging.getLogger(__name__)


@dataclass
class ResidueStageResult:
    """Residues (Nc, N) and trend terms (Nc,) for every channel."""

    C: np.ndarray
    D: np.ndarray
    E: np.ndarray


def identify_channel(
    samples: SampleSet,
    poles: np.ndarray,
    tags: Sequence[PoleTag],
    trend: AsymptoticTrend,
    weights: np.ndarray,
    channel: int,
) -> tuple[np.ndarray, float, float]:
    """Return split real residues, D and E for a single channel."""
    A, b = build_residue_system(samples, poles, tags, trend, weights, channel)
    x = scaled_lstsq(A, b)
    n_poles = poles.size
    d = float(x[n_poles]) if trend.n_terms >= 1 else 0.0
    e = float(x[n_poles + 1]) if trend.n_terms >= 2 else 0.0
    return x[:n_poles], d, e


def solve_residues(
    samples: SampleSet,
    poles: np.ndarray,
    tags: Sequence[PoleTag],
    trend: AsymptoticTrend,
    weights: np.ndarray,
) -> ResidueStageResult:
    """Solve one independent least-squares problem per response channel."""
    n_channels = samples.n_channels
    split = np.zeros((n_channels, poles.size), dtype=float)
    D = np.zeros(n_channels, dtype=complex)
    E = np.zeros(n_channels, dtype=complex)
    for channel in range(n_channels):
        split[channel], D[channel], E[channel] = identify_channel(
            samples, poles, tags, trend, weights, channel
        )
    logger.debug("Identified residues for %d channel(s), trend=%s.", n_channels, trend.value)
    return ResidueStageResult(C=combine_pair_coefficients(split, tags), D=D, E=E)
