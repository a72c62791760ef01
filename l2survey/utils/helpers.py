"""
Small helpers shared by the pipeline, CLI and walkthrough script.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Union

import numpy as np

logger = logging.getLogger(__name__)


def ensure_directory(path: Union[str, Path]) -> Path:
    """Create ``path`` (and parents) if needed and return it as a Path."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def _to_builtin(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    return str(value)


def save_json(
    data: Dict[str, Any],
    path: Union[str, Path],
    indent: int = 2
) -> None:
    """
    Save data to a JSON file, creating the parent directory.

    Parameters
    ----------
    data : Dict[str, Any]
        Data to save. numpy scalars are written as numbers, other values
        json cannot encode as strings.
    path : Union[str, Path]
        Output path
    indent : int
        JSON indentation
    """
    path = Path(path)
    ensure_directory(path.parent)

    with open(path, "w") as f:
        json.dump(data, f, indent=indent, default=_to_builtin)

    logger.info(f"Saved JSON to {path}")


def format_percentage(value: float, decimal_places: int = 1) -> str:
    """Format a proportion (0.734) as a percentage string ("73.4%")."""
    return f"{value * 100:.{decimal_places}f}%"


def format_pvalue(p: float) -> str:
    """
    Format a p-value according to APA guidelines.

    Parameters
    ----------
    p : float
        P-value

    Returns
    -------
    str
        ``"p < .001"``, ``"p = .004"`` or ``"p = .27"``
    """
    if p < 0.001:
        return "p < .001"
    elif p < 0.01:
        return f"p = {p:.3f}".replace("0.", ".", 1)
    else:
        return f"p = {p:.2f}".replace("0.", ".", 1)


def get_timestamp() -> str:
    """Current time as ``YYYYMMDD_HHMMSS``."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")
