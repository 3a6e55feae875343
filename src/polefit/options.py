"""Fit options and their YAML loader."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict

import yaml

from polefit.errors import InvalidInputError, OptionsFileError


class AsymptoticTrend(str, Enum):
    """Polynomial part added to the partial-fraction sum."""

    ZERO = "zero"
    CONSTANT = "constant"
    LINEAR = "linear"

    @property
    def n_terms(self) -> int:
        return {"zero": 0, "constant": 1, "linear": 2}[self.value]


@dataclass
class FitOptions:
    """Configuration for one vector fitting pass."""

    skip_pole_identification: bool = False
    skip_residue_identification: bool = False
    relax: bool = True
    stable: bool = True
    asymptotic_trend: AsymptoticTrend = AsymptoticTrend.CONSTANT
    real_tol: float = 1e-10
    relax_tol_low: float = 1e-18
    relax_tol_high: float = 1e18

    def __post_init__(self) -> None:
        try:
            self.asymptotic_trend = AsymptoticTrend(self.asymptotic_trend)
        except ValueError as exc:
            raise InvalidInputError(
                f"asymptotic_trend must be one of {[t.value for t in AsymptoticTrend]}."
            ) from exc
        for name in ("skip_pole_identification", "skip_residue_identification", "relax", "stable"):
            if not isinstance(getattr(self, name), bool):
                raise InvalidInputError(f"{name} must be boolean.")
        if not self.real_tol > 0.0:
            raise InvalidInputError("real_tol must be positive.")
        if not 0.0 < self.relax_tol_low < self.relax_tol_high:
            raise InvalidInputError("relax tolerances must satisfy 0 < low < high.")

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["asymptotic_trend"] = self.asymptotic_trend.value
        return data

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "FitOptions":
        known = {f.name for f in fields(FitOptions)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidInputError(f"Unknown fit options: {', '.join(unknown)}.")
        return FitOptions(**data)


def load_options_yaml(path: Path | str) -> FitOptions:
    """Load fit options from YAML, optionally nested under a ``fit`` key."""
    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(f"options file not found: {source}")
    try:
        data = yaml.safe_load(source.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise OptionsFileError(f"Could not parse options file {source}: {exc}") from exc
    data = data or {}
    if not isinstance(data, dict):
        raise OptionsFileError(f"Options file {source} must contain a mapping.")
    if "fit" in data:
        data = data["fit"] or {}
        if not isinstance(data, dict):
            raise OptionsFileError(f"'fit' section of {source} must be a mapping.")
    return FitOptions.from_dict(data)
