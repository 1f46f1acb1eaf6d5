"""
Alpha compositing of a coloured heatmap over the base image, and PNG output.
"""

from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np


def blend(
    base_rgba: np.ndarray,
    heat_rgb: np.ndarray,
    opacity: float = 0.4,
    mask: Optional[np.ndarray] = None
) -> np.ndarray:
    """
    Blend a coloured heatmap over an RGBA image at a single opacity.

    Args:
        base_rgba: Base image uint8 [H, W, 4]
        heat_rgb: Coloured heatmap uint8 [H, W, 3], same size as the base
        opacity: Heatmap weight (0.0 keeps the base, 1.0 shows only the heatmap)
        mask: Optional [H, W] bool array; the heatmap is only blended where True

    Returns:
        overlay: uint8 [H, W, 4] with the base alpha channel
    """
    if not 0.0 <= opacity <= 1.0:
        raise ValueError(f"opacity must be in [0, 1], got {opacity}")
    if base_rgba.ndim != 3 or base_rgba.shape[2] != 4:
        raise ValueError(f"Base image must be [H, W, 4], got {base_rgba.shape}")
    if heat_rgb.shape != base_rgba.shape[:2] + (3,):
        raise ValueError(
            f"Heatmap colours {heat_rgb.shape} do not match base image {base_rgba.shape[:2]}"
        )

    weight = np.full(base_rgba.shape[:2], opacity, dtype=np.float32)
    if mask is not None:
        if mask.shape != base_rgba.shape[:2]:
            raise ValueError(f"Mask {mask.shape} does not match base image {base_rgba.shape[:2]}")
        weight = weight * mask.astype(np.float32)
    weight = weight[:, :, np.newaxis]

    base_rgb = base_rgba[..., :3].astype(np.float32)
    out_rgb = base_rgb * (1.0 - weight) + heat_rgb.astype(np.float32) * weight

    overlay = np.empty_like(base_rgba)
    overlay[..., :3] = np.clip(np.rint(out_rgb), 0, 255).astype(np.uint8)
    overlay[..., 3] = base_rgba[..., 3]
    return overlay


def threshold_mask(normalized: np.ndarray, threshold: float) -> Optional[np.ndarray]:
    """Cells at or above the threshold; None when every cell qualifies."""
    if threshold <= 0.0:
        return None
    return normalized >= threshold


def save_png(path: Union[str, Path], rgba: np.ndarray) -> Path:
    path = Path(path)
    if path.suffix.lower() != ".png":
        raise ValueError(f"Output must be a .png file, got {path}")
    path.parent.mkdir(parents=True, exist_ok=True)

    # OpenCV writes BGR(A)
    bgra = cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGRA)
    if not cv2.imwrite(str(path), bgra):
        raise OSError(f"Could not write PNG: {path}")
    return path
