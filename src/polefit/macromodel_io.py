"""Serialization helpers for fitted state-space models."""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np

from polefit.errors import InvalidInputError, UnpairedPoleError
from polefit.model import StateSpaceModel
from polefit.options import AsymptoticTrend
from polefit.poles import basis_multiplicity, classify_poles

FORMAT_VERSION = 1


def check_model_consistency(model: StateSpaceModel) -> None:
    """Reject a model whose ``B`` or trend terms contradict its poles and trend."""
    try:
        tags = classify_poles(model.poles)
    except UnpairedPoleError as exc:
        raise InvalidInputError(f"Stored poles are not conjugate-paired: {exc}") from exc
    if not np.array_equal(model.B, basis_multiplicity(tags)):
        raise InvalidInputError(
            f"Stored B {model.B.tolist()} does not match the pole pairing "
            f"{basis_multiplicity(tags).tolist()}."
        )
    if model.trend is AsymptoticTrend.ZERO and np.any(model.D != 0.0):
        raise InvalidInputError("A model without a trend cannot carry constant terms.")
    if model.trend is not AsymptoticTrend.LINEAR and np.any(model.E != 0.0):
        raise InvalidInputError(f"A {model.trend.value} trend model cannot carry linear terms.")


def save_model_json(model: StateSpaceModel, path: str | Path) -> None:
    check_model_consistency(model)
    payload = {"format_version": FORMAT_VERSION, "model": model.to_json_dict()}
    Path(path).write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")


def load_model_json(path: str | Path) -> StateSpaceModel:
    """Load a model written by ``save_model_json`` and check it is self-consistent."""
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    version = payload.get("format_version")
    if version != FORMAT_VERSION:
        raise InvalidInputError(f"Unsupported model file version {version!r}.")
    model = StateSpaceModel.from_json_dict(payload["model"])
    check_model_consistency(model)
    return model


def format_pole_residue_text(model: StateSpaceModel) -> str:
    """Return a human-readable pole-residue listing."""
    lines = [
        f"Order: {model.order}",
        f"Channels: {model.n_channels}",
        f"Trend: {model.trend.value}",
        "Poles/Residues:",
    ]
    for idx, pole in enumerate(model.poles):
        pole_str = f"{pole.real:.6e} {pole.imag:+.6e}j"
        res_str = ", ".join(f"{r.real:.6e} {r.imag:+.6e}j" for r in model.C[:, idx])
        lines.append(f"  [{idx}] pole={pole_str} residues=[{res_str}]")
    for channel in range(model.n_channels):
        d = model.D[channel]
        e = model.E[channel]
        lines.append(
            f"  channel {channel}: d={d.real:.6e} {d.imag:+.6e}j e={e.real:.6e} {e.imag:+.6e}j"
        )
    return "\n".join(lines)
