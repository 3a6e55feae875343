"""Dense linear-algebra primitives used by the fitting stages."""

from __future__ import annotations

import numpy as np
import scipy.linalg


def column_scales(A: np.ndarray) -> np.ndarray:
    """Inverse Euclidean norm of each column; zero columns keep a unit scale."""
    norms = np.linalg.norm(A, axis=0)
    scales = np.ones_like(norms, dtype=float)
    nonzero = norms > 0.0
    scales[nonzero] = 1.0 / norms[nonzero]
    return scales


def scaled_lstsq(A: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Least-squares solve of ``A x = b`` with column-normalized ``A``."""
    A = np.asarray(A)
    b = np.asarray(b)
    scales = column_scales(A)
    x, *_ = scipy.linalg.lstsq(A * scales[None, :], b)
    if x.ndim == 1:
        return x * scales
    return x * scales[:, None]


def economic_qr(A: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    Q, R = scipy.linalg.qr(A, mode="economic")
    return Q, R


def eigenvalues(A: np.ndarray) -> np.ndarray:
    return scipy.linalg.eigvals(A)
