"""Micro-benchmark for vector fitting performance."""

from __future__ import annotations

import logging
import time

import numpy as np

from polefit import FitOptions, SampleSet, VectorFitting


def _make_samples(n_points: int) -> SampleSet:
    s = 1j * 2.0 * np.pi * np.logspace(0.0, 6.0, n_points)
    poles = np.array([
        -1200.0,
        -5000.0,
        -20.0 + 80.0j,
        -20.0 - 80.0j,
        -150.0 + 600.0j,
        -150.0 - 600.0j,
    ])
    residues = np.array([
        [40.0, 15.0, 12.0 - 4.0j, 12.0 + 4.0j, 8.0 - 3.0j, 8.0 + 3.0j],
        [-5.0, 2.0, 1.0 + 1.0j, 1.0 - 1.0j, -3.0 + 0.5j, -3.0 - 0.5j],
    ])
    basis = 1.0 / (s[:, None] - poles[None, :])
    response = basis @ residues.T + np.array([0.8, 0.1])[None, :]
    return SampleSet(s=s, response=response)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    samples = _make_samples(2000)
    n_iters = 12

    start = time.perf_counter()
    fitting = VectorFitting.from_order(samples, 6, FitOptions(), spacing="log")
    for _ in range(n_iters):
        fitting.fit()
    elapsed = time.perf_counter() - start

    print("Vector fitting micro-benchmark")
    print(f"Points: {samples.n_samples} | Channels: {samples.n_channels} | Poles: {fitting.get_order()} | Iterations: {n_iters}")
    print(f"Elapsed: {elapsed:.3f} s")
    print(f"RMS error: {fitting.get_rmse():.3e}")


if __name__ == "__main__":
    main()
