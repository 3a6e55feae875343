import numpy as np
import pytest

from polefit import AsymptoticTrend, FitOptions, SampleSet, UnsupportedConfigurationError, VectorFitting
from polefit.errors import BrokenInvariantError, InvalidInputError
from polefit.linalg import column_scales, scaled_lstsq
from polefit.poles import PoleTag, classify_poles
from polefit.relocation import real_companion_matrix
from polefit.samples import normalize_weights
from polefit.system import (
    build_basis,
    build_pole_identification_system,
    build_residue_system,
    trend_columns,
)


def _samples(n_channels: int = 1) -> SampleSet:
    s = 1j * np.linspace(1.0, 100.0, 30)
    response = np.column_stack([(k + 1.0) / (s + 3.0) + 0.2 for k in range(n_channels)])
    return SampleSet(s=s, response=response)


def test_pair_basis_reproduces_conjugate_terms():
    s = 1j * np.linspace(0.5, 20.0, 25)
    poles = np.array([-2.0, -1.0 + 5.0j, -1.0 - 5.0j])
    tags = classify_poles(poles)
    Dk = build_basis(s, poles, tags)

    residue = 3.0 - 2.0j
    expected = residue / (s - poles[1]) + np.conj(residue) / (s - poles[2])
    assert np.allclose(residue.real * Dk[:, 1] + residue.imag * Dk[:, 2], expected)
    assert np.allclose(Dk[:, 0], 1.0 / (s + 2.0))


def test_trend_columns():
    s = np.array([1j, 2j])

    assert trend_columns(s, AsymptoticTrend.ZERO).shape == (2, 0)
    assert np.allclose(trend_columns(s, AsymptoticTrend.CONSTANT), [[1.0], [1.0]])
    assert np.allclose(trend_columns(s, AsymptoticTrend.LINEAR), [[1.0, 1j], [1.0, 2j]])


def test_pole_identification_system_shape_and_rhs():
    samples = _samples(n_channels=3)
    poles = np.array([-1.0, -2.0 + 40.0j, -2.0 - 40.0j])
    tags = classify_poles(poles)
    weights = normalize_weights(None, samples)

    AA, bb = build_pole_identification_system(samples, poles, tags, FitOptions(), weights)

    assert AA.shape == (3 * 4, 4)
    assert bb.shape == (12,)
    assert np.isrealobj(AA) and np.isrealobj(bb)
    assert np.all(bb[:8] == 0.0)
    assert np.any(bb[8:] != 0.0)


def test_non_relaxed_identification_is_unsupported():
    samples = _samples()
    poles = np.array([-1.0, -5.0])
    options = FitOptions(relax=False)
    weights = normalize_weights(None, samples)

    with pytest.raises(UnsupportedConfigurationError):
        build_pole_identification_system(samples, poles, classify_poles(poles), options, weights)

    fitting = VectorFitting(samples, poles, options)
    with pytest.raises(UnsupportedConfigurationError):
        fitting.fit()


def test_pole_identification_requires_enough_samples():
    s = 1j * np.array([1.0, 2.0, 3.0])
    samples = SampleSet(s=s, response=1.0 / (s + 1.0))
    poles = np.array([-1.0, -2.0, -3.0, -4.0])

    with pytest.raises(InvalidInputError):
        VectorFitting(samples, poles).fit()


def test_residue_system_stacks_real_and_imag_rows():
    samples = _samples(n_channels=2)
    poles = np.array([-1.0, -2.0 + 40.0j, -2.0 - 40.0j])
    weights = normalize_weights(None, samples)
    weights[:, 1] = 2.0

    A, b = build_residue_system(samples, poles, classify_poles(poles), AsymptoticTrend.LINEAR, weights, 1)

    assert A.shape == (60, 5)
    assert b.shape == (60,)
    assert np.allclose(b[:30], 2.0 * samples.response[:, 1].real)
    assert np.allclose(b[30:], 2.0 * samples.response[:, 1].imag)
    assert np.allclose(A[30:, 3], 0.0)
    assert np.allclose(A[:30, 4], 0.0)


def test_scaled_lstsq_matches_plain_solution():
    rng = np.random.default_rng(1234)
    A = rng.normal(size=(20, 4)) * np.array([1e-2, 1.0, 1e2, 1e3])
    x_true = np.array([2.0, -1.0, 0.5, 3.0])

    x = scaled_lstsq(A, A @ x_true)

    assert np.allclose(x, x_true, rtol=1e-8)
    assert np.allclose(column_scales(np.zeros((3, 2))), 1.0)


def test_scaled_lstsq_fits_badly_scaled_columns():
    rng = np.random.default_rng(1234)
    A = rng.normal(size=(20, 4)) * np.array([1e-6, 1.0, 1e3, 1e6])
    b = A @ np.array([2.0, -1.0, 0.5, 3.0])

    x = scaled_lstsq(A, b)

    assert np.linalg.norm(A @ x - b) <= 1e-8 * np.linalg.norm(b)


def test_companion_matrix_of_zero_sigma_is_pole_matrix():
    poles = np.array([-3.0, -1.0 + 4.0j, -1.0 - 4.0j])
    tags = classify_poles(poles)

    ZER = real_companion_matrix(poles, tags, np.zeros(3, dtype=complex), 1.0, 1e-10)

    assert np.isrealobj(ZER)
    eig = np.linalg.eigvals(ZER)
    assert np.allclose(np.sort_complex(eig), np.sort_complex(poles))


def test_companion_matrix_rejects_mislabelled_pole():
    poles = np.array([-1.0 + 4.0j])

    with pytest.raises(BrokenInvariantError):
        real_companion_matrix(poles, [PoleTag.REAL], np.zeros(1, dtype=complex), 1.0, 1e-10)


def test_companion_matrix_rejects_complex_residue_on_real_pole():
    poles = np.array([-1.0, -2.0])

    with pytest.raises(BrokenInvariantError):
        real_companion_matrix(
            poles, [PoleTag.REAL, PoleTag.REAL], np.array([1.0 + 0.5j, 2.0]), 1.0, 1e-10
        )


def test_relaxed_constant_outside_bounds_is_unsupported():
    samples = _samples()
    poles = np.array([-3.0])

    with pytest.raises(UnsupportedConfigurationError):
        VectorFitting(samples, poles, FitOptions(relax_tol_low=1e3)).fit()


def test_zero_response_trips_relaxed_constant_check():
    s = 1j * np.linspace(1.0, 100.0, 30)
    samples = SampleSet(s=s, response=np.zeros((30, 2)))

    with pytest.raises(UnsupportedConfigurationError):
        VectorFitting(samples, np.array([-1.0, -5.0])).fit()


def test_sample_on_pole_is_rejected_before_solving():
    s = 1j * np.linspace(0.0, 100.0, 40)
    samples = SampleSet(s=s, response=1.0 / (s + 2.0))

    with pytest.raises(InvalidInputError):
        build_basis(s, np.array([0.0]), [PoleTag.REAL])
    with pytest.raises(InvalidInputError):
        VectorFitting(samples, [0.0, -5.0]).fit()
    with pytest.raises(InvalidInputError):
        VectorFitting(samples, [0.0, -5.0], FitOptions(skip_pole_identification=True)).fit()


def test_dc_sample_with_order_seeding_fails_at_construction():
    s = 1j * np.linspace(0.0, 100.0, 40)
    samples = SampleSet(s=s, response=1.0 / (s + 2.0))

    with pytest.raises(InvalidInputError):
        VectorFitting(samples, 4)
