"""Pole relocation: zeros of the relaxed sigma function."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from polefit.errors import BrokenInvariantError, UnsupportedConfigurationError
from polefit.linalg import eigenvalues, scaled_lstsq
from polefit.options import FitOptions
from polefit.poles import PoleTag, canonical_order, combine_pair_coefficients, snap_to_real, stabilize

logger = logging.getLogger(__name__)


@dataclass
class PoleStageResult:
    """Relocated poles plus the sigma coefficients that produced them."""

    poles: np.ndarray
    sigma_residues: np.ndarray
    sigma_constant: float


def real_companion_matrix(
    poles: np.ndarray,
    tags: Sequence[PoleTag],
    sigma_residues: np.ndarray,
    sigma_constant: float,
    tol: float,
) -> np.ndarray:
    """
    ``ZER = Lambda - B c^T / d`` in real arithmetic.

    Pairs become 2x2 blocks ``[[a, b], [-b, a]]`` with ``B = (2, 0)`` and
    ``c = (Re c, Im c)``.
    """
    n_poles = poles.size
    LAMBD = np.diag(np.asarray(poles, dtype=complex))
    B = np.ones(n_poles, dtype=float)
    C = np.asarray(sigma_residues, dtype=complex).copy()
    for m, tag in enumerate(tags):
        if tag != PoleTag.COMPLEX_FIRST:
            continue
        pole = poles[m]
        LAMBD[m, m] = pole.real
        LAMBD[m + 1, m + 1] = pole.real
        LAMBD[m, m + 1] = pole.imag
        LAMBD[m + 1, m] = -pole.imag
        B[m] = 2.0
        B[m + 1] = 0.0
        coefficient = C[m]
        C[m] = coefficient.real
        C[m + 1] = coefficient.imag

    scale = max(1.0, float(np.max(np.abs(poles))))
    if np.max(np.abs(LAMBD.imag), initial=0.0) > tol * scale:
        raise BrokenInvariantError("Pole matrix is not real after block expansion; pairing is broken.")
    c_scale = max(1.0, float(np.max(np.abs(C), initial=0.0)))
    if np.max(np.abs(C.imag), initial=0.0) > tol * c_scale:
        raise BrokenInvariantError("Sigma residues are not real after block expansion; pairing is broken.")

    return LAMBD.real - np.outer(B, C.real) / sigma_constant


def relocate_poles(
    poles: np.ndarray,
    tags: Sequence[PoleTag],
    AA: np.ndarray,
    bb: np.ndarray,
    options: FitOptions,
) -> PoleStageResult:
    """Solve the relaxed system and return the zeros of sigma as new poles."""
    x = scaled_lstsq(AA, bb)
    sigma_residues = combine_pair_coefficients(x[:-1], tags)
    sigma_constant = float(x[-1])

    if abs(sigma_constant) < options.relax_tol_low or abs(sigma_constant) > options.relax_tol_high:
        raise UnsupportedConfigurationError(
            f"Relaxed sigma constant {sigma_constant:.3e} is outside "
            f"[{options.relax_tol_low:.1e}, {options.relax_tol_high:.1e}]; "
            "the non-relaxed fallback is not implemented."
        )

    ZER = real_companion_matrix(poles, tags, sigma_residues, sigma_constant, options.real_tol)
    new_poles = snap_to_real(eigenvalues(ZER), options.real_tol)
    if options.stable:
        new_poles = stabilize(new_poles)
    new_poles = canonical_order(new_poles, options.real_tol)
    logger.debug("Relocated %d poles (sigma constant %.3e).", new_poles.size, sigma_constant)
    return PoleStageResult(poles=new_poles, sigma_residues=sigma_residues, sigma_constant=sigma_constant)
