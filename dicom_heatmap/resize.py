import numpy as np


def nearest_indices(src_size: int, dst_size: int) -> np.ndarray:
    """Source index floor(i * src_size / dst_size) for each of dst_size outputs."""
    return (np.arange(dst_size, dtype=np.int64) * src_size) // dst_size


def resize_nearest(grid: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Nearest-neighbour resample so the result is [height, width] (plus any
    channel axis). Output cell (y, x) takes source cell
    (floor(y * src_h / height), floor(x * src_w / width)).

    Args:
        grid: [H, W] or [H, W, C] array
        width: Target width in pixels
        height: Target height in pixels

    Returns:
        Resampled array with the input dtype
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Target size must be positive, got {width}x{height}")
    grid = np.asarray(grid)
    if grid.ndim not in (2, 3) or grid.shape[0] == 0 or grid.shape[1] == 0:
        raise ValueError(f"Expected a non-empty [H, W] or [H, W, C] grid, got shape {grid.shape}")

    if grid.shape[:2] == (height, width):
        return grid.copy()

    # Integer index maps; float scale factors pick the wrong cell for some sizes
    ys = nearest_indices(grid.shape[0], height)
    xs = nearest_indices(grid.shape[1], width)
    return grid[ys[:, np.newaxis], xs]
