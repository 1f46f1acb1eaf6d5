"""
Heatmap normalization.

Rescales raw model scores into [0, 1] before colour mapping. Degenerate
inputs (constant grids) map to zeros rather than NaN.
"""

import numpy as np

NORMALIZATION_METHODS = ("minmax", "zscore", "percentile")

PERCENTILE_LOW = 5.0
PERCENTILE_HIGH = 95.0


def _as_float64(grid: np.ndarray) -> np.ndarray:
    # Every method is scale invariant; dividing by the largest magnitude keeps
    # differences such as max - min finite even for values near the dtype limit
    grid = np.asarray(grid, dtype=np.float64)
    peak = float(np.abs(grid).max())
    if peak > 1.0:
        grid = grid / peak
    return grid


def normalize_minmax(grid: np.ndarray) -> np.ndarray:
    """Scale so the minimum maps to 0 and the maximum to 1."""
    grid = _as_float64(grid)
    gmin, gmax = float(grid.min()), float(grid.max())
    if gmax > gmin:
        return ((grid - gmin) / (gmax - gmin)).astype(np.float32)
    return np.zeros(grid.shape, dtype=np.float32)


def normalize_zscore(grid: np.ndarray) -> np.ndarray:
    """Standard score, clipped to [0, 1]; values below the mean become 0."""
    grid = _as_float64(grid)
    std = float(grid.std())
    if std == 0.0:
        return np.zeros(grid.shape, dtype=np.float32)
    z = (grid - float(grid.mean())) / std
    return np.clip(z, 0.0, 1.0).astype(np.float32)


def normalize_percentile(
    grid: np.ndarray,
    low: float = PERCENTILE_LOW,
    high: float = PERCENTILE_HIGH
) -> np.ndarray:
    """
    Clip to the [low, high] percentile band and scale that band to [0, 1].

    Args:
        grid: Raw scores
        low: Lower percentile (default 5)
        high: Upper percentile (default 95)

    Returns:
        float32 array in [0, 1]
    """
    grid = _as_float64(grid)
    p_low, p_high = np.percentile(grid, [low, high])
    if p_high <= p_low:
        return np.zeros(grid.shape, dtype=np.float32)
    clipped = np.clip(grid, p_low, p_high)
    return ((clipped - p_low) / (p_high - p_low)).astype(np.float32)


_METHODS = {
    "minmax": normalize_minmax,
    "zscore": normalize_zscore,
    "percentile": normalize_percentile,
}


def normalize(grid: np.ndarray, method: str = "minmax") -> np.ndarray:
    try:
        fn = _METHODS[method]
    except KeyError:
        raise ValueError(
            f"Unknown normalization {method!r}; choose from {', '.join(NORMALIZATION_METHODS)}"
        )
    grid = np.asarray(grid)
    if grid.size == 0:
        raise ValueError("Cannot normalize an empty heatmap")
    if not np.all(np.isfinite(grid)):
        raise ValueError("Cannot normalize a heatmap containing NaN or infinite values")
    return fn(grid)
