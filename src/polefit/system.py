"""Least-squares systems for pole and residue identification."""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from polefit.errors import InvalidInputError, UnsupportedConfigurationError
from polefit.linalg import economic_qr
from polefit.options import AsymptoticTrend, FitOptions
from polefit.poles import PoleTag
from polefit.samples import SampleSet

logger = logging.getLogger(__name__)


def build_basis(
    s: np.ndarray,
    poles: np.ndarray,
    tags: Sequence[PoleTag],
    weight: float | np.ndarray = 1.0,
) -> np.ndarray:
    """
    Real-coefficient partial-fraction basis, shape (Ns, N).

    A real pole ``a`` gives ``1/(s-a)``. A pair ``(a, conj(a))`` gives
    ``1/(s-a) + 1/(s-conj(a))`` and ``j/(s-a) - j/(s-conj(a))`` so that the
    unknown coefficients stay real.
    """
    s = np.asarray(s, dtype=complex)
    poles = np.asarray(poles, dtype=complex)
    weight = np.asarray(weight, dtype=float)
    Dk = np.zeros((s.size, poles.size), dtype=complex)
    with np.errstate(divide="ignore", invalid="ignore"):
        for m, tag in enumerate(tags):
            pole = poles[m]
            if tag == PoleTag.REAL:
                Dk[:, m] = weight / (s - pole)
            elif tag == PoleTag.COMPLEX_FIRST:
                direct = 1.0 / (s - pole)
                mirrored = 1.0 / (s - np.conj(pole))
                Dk[:, m] = weight * (direct + mirrored)
                Dk[:, m + 1] = weight * (1j * direct - 1j * mirrored)
    if not np.isfinite(Dk).all():
        rows, cols = np.nonzero(~np.isfinite(Dk))
        raise InvalidInputError(
            f"Sample s={complex(s[rows[0]])} coincides with pole {complex(poles[cols[0]])}; "
            "the partial-fraction basis is singular there."
        )
    return Dk


def trend_columns(s: np.ndarray, trend: AsymptoticTrend) -> np.ndarray:
    """Columns for the constant and linear terms, shape (Ns, n_terms)."""
    s = np.asarray(s, dtype=complex)
    columns = [np.ones_like(s), s][: trend.n_terms]
    if not columns:
        return np.zeros((s.size, 0), dtype=complex)
    return np.column_stack(columns)


def stack_real_imag(A: np.ndarray) -> np.ndarray:
    return np.concatenate([A.real, A.imag], axis=0)


def relaxation_scale(samples: SampleSet, weights: np.ndarray) -> float:
    """sqrt(sum_n ||w_n f_n||^2) / Ns."""
    weighted = weights * samples.response
    return float(np.sqrt(np.sum(np.abs(weighted) ** 2)) / samples.n_samples)


def check_system_size(n_samples: int, n_poles: int, trend: AsymptoticTrend) -> None:
    n_unknowns = 2 * n_poles + trend.n_terms + 1
    if 2 * n_samples < n_unknowns:
        raise InvalidInputError(
            f"{n_samples} samples cannot determine {n_poles} poles "
            f"({n_unknowns} unknowns per channel need at least {(n_unknowns + 1) // 2} samples)."
        )


def build_pole_identification_system(
    samples: SampleSet,
    poles: np.ndarray,
    tags: Sequence[PoleTag],
    options: FitOptions,
    weights: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Reduced real system ``AA x = bb`` for the relaxed sigma coefficients.

    Each channel's ``[w X, -w f X_sigma]`` block is QR-factorized and only the
    lower-right block of R (the part acting on the shared sigma unknowns) is
    kept. The last channel also carries the relaxation row
    ``Re(scale * sum_k X_sigma(s_k)) = Ns * scale``.
    """
    if not options.relax:
        raise UnsupportedConfigurationError(
            "Non-relaxed pole identification is not implemented; set relax=True."
        )
    n_poles = poles.size
    n_channels = samples.n_channels
    trend = options.asymptotic_trend
    offs = trend.n_terms
    check_system_size(samples.n_samples, n_poles, trend)

    Dk = build_basis(samples.s, poles, tags)
    left = np.hstack([Dk, trend_columns(samples.s, trend)])
    sigma_basis = np.hstack([Dk, np.ones((samples.n_samples, 1), dtype=complex)])
    scale = relaxation_scale(samples, weights)
    logger.debug("Pole identification: N=%d Nc=%d trend=%s scale=%.3e", n_poles, n_channels, trend.value, scale)

    AA = np.zeros((n_channels * (n_poles + 1), n_poles + 1), dtype=float)
    bb = np.zeros(n_channels * (n_poles + 1), dtype=float)
    ind1 = n_poles + offs

    for n in range(n_channels):
        weig = weights[:, n]
        f_n = samples.response[:, n]
        A = np.hstack([weig[:, None] * left, -(weig * f_n)[:, None] * sigma_basis])
        A = stack_real_imag(A)

        last = n == n_channels - 1
        if last:
            relax_row = np.zeros((1, A.shape[1]), dtype=float)
            relax_row[0, ind1:] = np.real(scale * np.sum(sigma_basis, axis=0))
            A = np.vstack([A, relax_row])

        Q, R = economic_qr(A)
        block = slice(n * (n_poles + 1), (n + 1) * (n_poles + 1))
        AA[block, :] = R[ind1:, ind1:]
        if last:
            bb[block] = Q[-1, ind1:] * samples.n_samples * scale

    return AA, bb


def build_residue_system(
    samples: SampleSet,
    poles: np.ndarray,
    tags: Sequence[PoleTag],
    trend: AsymptoticTrend,
    weights: np.ndarray,
    channel: int,
) -> tuple[np.ndarray, np.ndarray]:
    """Real (2 Ns)-row system for one channel's residues and trend terms."""
    weig = weights[:, channel]
    A = np.hstack([build_basis(samples.s, poles, tags), trend_columns(samples.s, trend)])
    A = weig[:, None] * A
    b = weig * samples.response[:, channel]
    return stack_real_imag(A), np.concatenate([b.real, b.imag])
