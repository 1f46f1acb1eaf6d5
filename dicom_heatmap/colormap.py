"""
Fixed-breakpoint colour gradients.

Each colormap is a list of (position, (r, g, b)) stops running from 0.0 to
1.0. Colours between two stops are linearly interpolated per channel.
"""

from typing import Dict, List, Tuple

import numpy as np

Stop = Tuple[float, Tuple[int, int, int]]

COLORMAPS: Dict[str, List[Stop]] = {
    # blue -> cyan -> yellow -> red, as in the usual Grad-CAM rendering
    "jet": [
        (0.0, (0, 0, 128)),
        (0.125, (0, 0, 255)),
        (0.375, (0, 255, 255)),
        (0.625, (255, 255, 0)),
        (0.875, (255, 0, 0)),
        (1.0, (128, 0, 0)),
    ],
    # black -> red -> yellow -> white
    "hot": [
        (0.0, (0, 0, 0)),
        (0.375, (255, 0, 0)),
        (0.75, (255, 255, 0)),
        (1.0, (255, 255, 255)),
    ],
    "viridis": [
        (0.0, (68, 1, 84)),
        (0.25, (59, 82, 139)),
        (0.5, (33, 145, 140)),
        (0.75, (94, 201, 98)),
        (1.0, (253, 231, 37)),
    ],
    "inferno": [
        (0.0, (0, 0, 4)),
        (0.25, (87, 16, 110)),
        (0.5, (188, 55, 84)),
        (0.75, (249, 142, 9)),
        (1.0, (252, 255, 164)),
    ],
    "grayscale": [
        (0.0, (0, 0, 0)),
        (1.0, (255, 255, 255)),
    ],
}


def available_colormaps() -> Tuple[str, ...]:
    return tuple(COLORMAPS)


def _stops(name: str) -> Tuple[np.ndarray, np.ndarray]:
    try:
        stops = COLORMAPS[name]
    except KeyError:
        raise ValueError(
            f"Unknown colormap {name!r}; choose from {', '.join(available_colormaps())}"
        )
    positions = np.array([p for p, _ in stops], dtype=np.float64)
    colors = np.array([c for _, c in stops], dtype=np.float64)
    return positions, colors


def apply_colormap(values: np.ndarray, name: str = "jet") -> np.ndarray:
    """
    Map normalized scores to RGB colours.

    Args:
        values: Array of any shape, expected in [0, 1] (clipped otherwise)
        name: Colormap name

    Returns:
        uint8 array of shape values.shape + (3,)
    """
    positions, colors = _stops(name)
    values = np.nan_to_num(np.asarray(values, dtype=np.float64), nan=0.0)
    values = np.clip(values, 0.0, 1.0)

    rgb = np.empty(values.shape + (3,), dtype=np.float64)
    for channel in range(3):
        rgb[..., channel] = np.interp(values, positions, colors[:, channel])

    return np.clip(np.rint(rgb), 0, 255).astype(np.uint8)


def colormap_rgb(value: float, name: str = "jet") -> Tuple[int, int, int]:
    r, g, b = apply_colormap(np.array([value]), name)[0]
    return int(r), int(g), int(b)
