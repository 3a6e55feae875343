"""Pole sets: conjugate-pair tagging, starting poles and canonical ordering."""

from __future__ import annotations

import logging
from enum import IntEnum
from typing import List, Literal, Sequence

import numpy as np

from polefit.errors import BrokenInvariantError, InvalidInputError, UnpairedPoleError
from polefit.samples import SampleSet

logger = logging.getLogger(__name__)

DEFAULT_REAL_TOL = 1e-10


class PoleTag(IntEnum):
    """Role of a pole in the real-valued basis."""

    REAL = 0
    COMPLEX_FIRST = 1
    COMPLEX_SECOND = 2


def _is_real(value: complex, tol: float) -> bool:
    return abs(value.imag) <= tol


def classify_poles(poles: Sequence[complex], tol: float = DEFAULT_REAL_TOL) -> List[PoleTag]:
    """
    Tag each pole as real, first or second member of a conjugate pair.

    A non-real pole opens a pair and must be followed by its conjugate.
    """
    poles = np.asarray(poles, dtype=complex)
    tags: List[PoleTag] = []
    idx = 0
    while idx < poles.size:
        pole = complex(poles[idx])
        if _is_real(pole, tol):
            tags.append(PoleTag.REAL)
            idx += 1
            continue
        if idx + 1 >= poles.size:
            raise UnpairedPoleError(
                f"Complex pole {pole} at index {idx} has no conjugate partner.",
                index=idx,
                pole=pole,
            )
        partner = complex(poles[idx + 1])
        if abs(partner - pole.conjugate()) > tol * max(1.0, abs(pole)):
            raise UnpairedPoleError(
                f"Complex pole {pole} at index {idx} is followed by {partner}, not its conjugate.",
                index=idx,
                pole=pole,
            )
        tags.extend([PoleTag.COMPLEX_FIRST, PoleTag.COMPLEX_SECOND])
        idx += 2
    return tags


def validate_poles(poles: Sequence[complex], tol: float = DEFAULT_REAL_TOL) -> np.ndarray:
    """Return poles as a complex array after checking finiteness and pairing."""
    poles = np.asarray(poles, dtype=complex).reshape(-1)
    if poles.size == 0:
        raise InvalidInputError("At least one pole is required.")
    if not np.isfinite(poles).all():
        raise InvalidInputError("poles must be finite.")
    classify_poles(poles, tol)
    return poles


def initial_poles(
    imag_min: float,
    imag_max: float,
    order: int,
    spacing: Literal["linear", "log"] = "linear",
) -> np.ndarray:
    """
    Starting conjugate pairs with imaginary parts spread over [imag_min, imag_max].

    Each pair is ``-b/100 +/- jb``. Odd orders need a caller-supplied real pole,
    so they are rejected here.
    """
    if order <= 0:
        raise InvalidInputError("order must be positive.")
    if order % 2 != 0:
        raise InvalidInputError(
            f"Complex-conjugate seeding needs an even order, got {order}; supply poles explicitly."
        )
    if imag_max < imag_min:
        raise InvalidInputError("imag_max must not be smaller than imag_min.")
    if imag_min <= 0.0:
        raise InvalidInputError(
            f"Seeding needs a positive imaginary range, got minimum {imag_min}; "
            "a pole at the origin would coincide with a DC sample."
        )
    n_pairs = order // 2
    if spacing == "linear":
        imag_grid = np.linspace(imag_min, imag_max, n_pairs)
    elif spacing == "log":
        imag_grid = np.logspace(np.log10(imag_min), np.log10(imag_max), n_pairs)
    else:
        raise InvalidInputError("spacing must be 'linear' or 'log'.")

    poles: list[complex] = []
    for imag in imag_grid:
        pole = complex(-imag / 100.0, imag)
        poles.append(pole)
        poles.append(pole.conjugate())
    return np.array(poles, dtype=complex)


def initial_poles_for_samples(
    samples: SampleSet,
    order: int,
    spacing: Literal["linear", "log"] = "linear",
) -> np.ndarray:
    """Starting poles spanning the imaginary range of the sample frequencies."""
    imag_min, imag_max = samples.imag_range()
    return initial_poles(imag_min, imag_max, order, spacing=spacing)


def snap_to_real(poles: np.ndarray, tol: float = DEFAULT_REAL_TOL) -> np.ndarray:
    poles = np.asarray(poles, dtype=complex).copy()
    near_real = np.abs(poles.imag) <= tol
    poles[near_real] = poles[near_real].real
    return poles


def stabilize(poles: np.ndarray) -> np.ndarray:
    """Reflect right half-plane poles across the imaginary axis."""
    poles = np.asarray(poles, dtype=complex).copy()
    unstable = poles.real > 0.0
    if np.any(unstable):
        logger.warning("Reflecting %d unstable pole(s) into the left half-plane.", int(np.sum(unstable)))
        poles[unstable] = poles[unstable] - 2.0 * poles[unstable].real
    return poles


def canonical_order(poles: np.ndarray, tol: float = DEFAULT_REAL_TOL) -> np.ndarray:
    """
    Real poles first (ascending ``|real|``), then pairs ascending by ``(|imag|, |real|)``.

    Each pair is emitted as the positive-imaginary member followed by its exact
    conjugate. Complex values without a matching conjugate raise.
    """
    poles = snap_to_real(poles, tol)
    reals = poles[poles.imag == 0.0].real
    upper = poles[poles.imag > 0.0]
    lower = poles[poles.imag < 0.0]
    if upper.size != lower.size:
        raise BrokenInvariantError(
            f"Found {upper.size} upper and {lower.size} lower half-plane poles; conjugate pairing is broken."
        )

    unmatched = list(lower)
    for pole in upper:
        distances = np.abs(np.array(unmatched) - np.conj(pole))
        best = int(np.argmin(distances))
        if distances[best] > tol * max(1.0, abs(pole)):
            raise BrokenInvariantError(f"Pole {pole} has no conjugate partner.")
        unmatched.pop(best)

    reals = reals[np.argsort(np.abs(reals), kind="stable")]
    upper = upper[np.lexsort((np.abs(upper.real), np.abs(upper.imag)))]

    ordered = [complex(value, 0.0) for value in reals]
    for pole in upper:
        ordered.append(complex(pole))
        ordered.append(complex(pole).conjugate())
    return np.array(ordered, dtype=complex)


def combine_pair_coefficients(values: np.ndarray, tags: Sequence[PoleTag]) -> np.ndarray:
    """
    Turn real split coefficients into complex ones along the last axis.

    For a pair stored as ``(r1, r2)`` the result is ``(r1 + j r2, r1 - j r2)``;
    real-pole entries pass through.
    """
    values = np.asarray(values)
    combined = values.astype(complex, copy=True)
    for idx, tag in enumerate(tags):
        if tag == PoleTag.COMPLEX_FIRST:
            r1 = values[..., idx].real
            r2 = values[..., idx + 1].real
            combined[..., idx] = r1 + 1j * r2
            combined[..., idx + 1] = r1 - 1j * r2
    return combined


def basis_multiplicity(tags: Sequence[PoleTag]) -> np.ndarray:
    """1 for real and first-of-pair poles, 0 for the second member of a pair."""
    return np.array([0 if tag == PoleTag.COMPLEX_SECOND else 1 for tag in tags], dtype=int)
