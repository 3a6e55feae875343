import numpy as np
import pytest

from polefit import (
    FitNotComputedError,
    FitOptions,
    InvalidInputError,
    SampleSet,
    UnpairedPoleError,
    VectorFitting,
)


def _samples(n_samples: int = 20, n_channels: int = 2) -> SampleSet:
    s = 1j * np.linspace(1.0, 50.0, n_samples)
    response = np.column_stack([1.0 / (s + k + 1.0) for k in range(n_channels)])
    return SampleSet(s=s, response=response)


def test_empty_samples_rejected():
    with pytest.raises(InvalidInputError):
        SampleSet(s=np.array([], dtype=complex), response=np.zeros((0, 1)))
    with pytest.raises(InvalidInputError):
        SampleSet.from_pairs([])
    with pytest.raises(InvalidInputError):
        VectorFitting([], [-1.0])


def test_ragged_response_width_rejected():
    pairs = [(1j, [1.0, 2.0]), (2j, [1.0])]

    with pytest.raises(InvalidInputError):
        SampleSet.from_pairs(pairs)


def test_pairs_build_sample_set():
    samples = SampleSet.from_pairs([(1j, [1.0, 2.0]), (2j, [3.0, 4.0 + 1j])])

    assert samples.n_samples == 2
    assert samples.n_channels == 2
    assert samples.response[1, 1] == 4.0 + 1j
    points = [point for point, _ in samples]
    assert points == [1j, 2j]


def test_non_finite_samples_rejected():
    with pytest.raises(InvalidInputError):
        SampleSet(s=np.array([1j, np.nan]), response=np.ones(2))


def test_weight_shape_mismatch_rejected():
    samples = _samples()

    with pytest.raises(InvalidInputError):
        VectorFitting(samples, [-1.0, -2.0], weights=np.ones((20, 3)))
    with pytest.raises(InvalidInputError):
        VectorFitting(samples, [-1.0, -2.0], weights=np.ones((19, 2)))
    with pytest.raises(InvalidInputError):
        VectorFitting(samples, [-1.0, -2.0], weights=np.ones(7))


def test_ragged_weight_rows_rejected():
    s = 1j * np.array([1.0, 2.0, 3.0])
    samples = SampleSet(s=s, response=np.column_stack([1.0 / (s + 1.0), 1.0 / (s + 2.0)]))

    with pytest.raises(InvalidInputError):
        VectorFitting(samples, [-1.0], weights=[[1.0, 1.0], [1.0], [1.0, 1.0]])


def test_negative_weights_rejected():
    weights = np.ones((20, 2))
    weights[3, 1] = -1.0

    with pytest.raises(InvalidInputError):
        VectorFitting(_samples(), [-1.0, -2.0], weights=weights)


def test_flat_weight_vector_needs_single_channel():
    with pytest.raises(InvalidInputError):
        VectorFitting(_samples(n_channels=2), [-1.0, -2.0], weights=np.linspace(1.0, 2.0, 20))

    fitting = VectorFitting(_samples(n_channels=1), [-1.0, -2.0], weights=np.linspace(1.0, 2.0, 20))
    result = fitting.fit()

    assert np.isfinite(result.rmse)


def test_odd_order_seeding_rejected():
    with pytest.raises(InvalidInputError):
        VectorFitting(_samples(), 3)


def test_unpaired_complex_pole_rejected_at_construction():
    with pytest.raises(UnpairedPoleError):
        VectorFitting(_samples(), [-1.0 + 2.0j, -3.0])


def test_model_queries_before_fit_raise():
    fitting = VectorFitting(_samples(), [-1.0, -2.0])

    assert fitting.get_order() == 2
    assert fitting.get_samples_size() == 20
    assert fitting.get_response_size() == 2
    with pytest.raises(FitNotComputedError):
        fitting.get_rmse()
    with pytest.raises(FitNotComputedError):
        fitting.get_fitted_samples()


def test_set_options_requires_fit_options():
    fitting = VectorFitting(_samples(), [-1.0, -2.0])

    with pytest.raises(InvalidInputError):
        fitting.set_options({"relax": True})


def test_options_validation():
    with pytest.raises(InvalidInputError):
        FitOptions(asymptotic_trend="cubic")
    with pytest.raises(InvalidInputError):
        FitOptions(real_tol=0.0)
    with pytest.raises(InvalidInputError):
        FitOptions(relax_tol_low=1.0, relax_tol_high=0.5)
    with pytest.raises(InvalidInputError):
        FitOptions(stable="yes")
