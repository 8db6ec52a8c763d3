"""Hyperparameter grids for the model families.

Ranges follow the dials convention: ``low``/``high`` are expressed on the
transformed scale, so a ``log10`` penalty range of (-3, 1) spans 0.001 to
10. ``regular_grid`` takes ``levels`` evenly spaced values per parameter and
crosses them.
"""

from dataclasses import dataclass
import itertools
from typing import Any, Iterator

import numpy as np


_INVERSE_TRANSFORMS = {
    "identity": lambda x: x,
    "log10": lambda x: np.power(10.0, x),
    "log2": lambda x: np.power(2.0, x),
}


@dataclass(frozen=True)
class ParameterRange:
    """Bounds (or an explicit list of values) for one hyperparameter."""
    name: str
    low: float | None = None
    high: float | None = None
    transform: str = "identity"
    integer: bool = False
    values: tuple[float, ...] | None = None

    def __post_init__(self) -> None:
        if self.transform not in _INVERSE_TRANSFORMS:
            raise ValueError(
                f"Unknown transform '{self.transform}' for '{self.name}'. "
                f"Available: {sorted(_INVERSE_TRANSFORMS)}"
            )
        if self.values is None and (self.low is None or self.high is None):
            raise ValueError(f"Parameter '{self.name}' needs low/high bounds or explicit values")

    def grid_values(self, levels: int) -> list[float | int]:
        """Return the candidate values for this parameter."""
        if self.values is not None:
            raw = list(self.values)
        else:
            if levels < 1:
                raise ValueError(f"levels must be at least 1, got {levels}")
            points = np.linspace(self.low, self.high, levels) if levels > 1 else np.array([self.low])
            raw = _INVERSE_TRANSFORMS[self.transform](points).tolist()

        if self.integer:
            seen: list[int] = []
            for value in raw:
                value = int(round(value))
                if value not in seen:
                    seen.append(value)
            return seen
        return [float(v) for v in raw]


@dataclass(frozen=True)
class HyperparameterGrid:
    """Finite, ordered set of grid points for one model family."""
    parameter_names: tuple[str, ...]
    points: tuple[dict[str, Any], ...]

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[tuple[int, dict[str, Any]]]:
        """Yield ``(grid_id, params)`` pairs in grid order."""
        return iter(enumerate(self.points))

    def get(self, grid_id: int) -> dict[str, Any]:
        return dict(self.points[grid_id])


def regular_grid(ranges: list[ParameterRange], levels: int = 3) -> HyperparameterGrid:
    """Cross ``levels`` evenly spaced values of every parameter."""
    if not ranges:
        raise ValueError("A grid needs at least one parameter range")

    names = tuple(r.name for r in ranges)
    value_lists = [r.grid_values(levels) for r in ranges]
    points = tuple(
        dict(zip(names, combination)) for combination in itertools.product(*value_lists)
    )
    return HyperparameterGrid(parameter_names=names, points=points)
