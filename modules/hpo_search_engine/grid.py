from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from sklearn.model_selection import ParameterGrid

from utils.exceptions import InvalidConfiguration


@dataclass(frozen=True)
class GridPoint:
    """One hyperparameter combination and its position in the grid's enumeration order."""
    index: int
    params: Dict[str, Any] = field(default_factory=dict)

    def label(self) -> str:
        return ", ".join(f"{k}={v}" for k, v in sorted(self.params.items()))


def build_grid(param_grid: Mapping[str, Any]) -> List[GridPoint]:
    """
    Expand per-parameter candidate lists into their Cartesian product.

    Enumeration order is ParameterGrid's: parameter names sorted, the last
    name varying fastest. That order is what the selector's tie-break uses.

    Raises:
        InvalidConfiguration: empty grid, or a parameter without candidates.
    """
    if not isinstance(param_grid, Mapping) or not param_grid:
        raise InvalidConfiguration(f"Hyperparameter grid must be a non-empty mapping, got {param_grid!r}")

    for name, candidates in param_grid.items():
        if not isinstance(name, str):
            raise InvalidConfiguration(f"Hyperparameter names must be strings, got {name!r}")
        if not isinstance(candidates, (list, tuple)) or len(candidates) == 0:
            raise InvalidConfiguration(f"Hyperparameter '{name}' needs a non-empty list of candidates, got {candidates!r}")

    return [GridPoint(index=i, params=dict(p)) for i, p in enumerate(ParameterGrid(dict(param_grid)))]
