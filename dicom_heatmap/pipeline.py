"""
Overlay pipeline.

decode DICOM -> load heatmap -> normalize -> resize to the image -> colormap
-> blend -> PNG.

A missing input file is replaced by a synthetic demo image and logged; a file
that exists but cannot be parsed is an error.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np
from tqdm import tqdm

from .colormap import apply_colormap
from .composite import blend, save_png, threshold_mask
from .config import OverlaySettings
from .dicom_io import DicomReadError, load_dicom_image, synthetic_base, to_rgba
from .heatmap_io import HeatmapFormatError, find_heatmap_for, load_heatmap, synthetic_heatmap
from .normalize import normalize
from .resize import resize_nearest

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass
class OverlayResult:
    rgba: np.ndarray
    heatmap_shape: Tuple[int, int]
    used_synthetic_base: bool = False
    used_synthetic_heatmap: bool = False

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height) of the composite."""
        return self.rgba.shape[1], self.rgba.shape[0]


@dataclass
class BatchSummary:
    written: List[Path] = field(default_factory=list)
    failed: List[Tuple[Path, str]] = field(default_factory=list)
    synthetic_heatmaps: int = 0

    @property
    def ok(self) -> bool:
        return not self.failed


def _load_base(dicom_path: Optional[PathLike], settings: OverlaySettings) -> Tuple[np.ndarray, bool]:
    if dicom_path is not None and Path(dicom_path).is_file():
        return to_rgba(load_dicom_image(dicom_path)), False

    logger.warning(
        f"DICOM file {dicom_path} not found, using a synthetic "
        f"{settings.demo_width}x{settings.demo_height} demo image"
    )
    return synthetic_base(settings.demo_width, settings.demo_height), True


def _load_grid(heatmap_path: Optional[PathLike], width: int, height: int) -> Tuple[np.ndarray, bool]:
    if heatmap_path is not None and Path(heatmap_path).is_file():
        return load_heatmap(heatmap_path), False

    logger.warning(f"Heatmap file {heatmap_path} not found, using a synthetic demo gradient")
    return synthetic_heatmap(width, height), True


def render_overlay(
    dicom_path: Optional[PathLike],
    heatmap_path: Optional[PathLike],
    settings: Optional[OverlaySettings] = None
) -> OverlayResult:
    """
    Composite a heatmap over a DICOM image.

    Args:
        dicom_path: DICOM file (None or missing -> synthetic demo image)
        heatmap_path: Heatmap file (None or missing -> synthetic demo gradient)
        settings: Overlay settings (defaults when None)

    Returns:
        OverlayResult holding the RGBA composite
    """
    settings = (settings or OverlaySettings()).validate()

    base, synthetic_base_used = _load_base(dicom_path, settings)
    height, width = base.shape[:2]

    grid, synthetic_grid_used = _load_grid(heatmap_path, width, height)
    heatmap_shape = (int(grid.shape[0]), int(grid.shape[1]))

    scores = normalize(grid, settings.normalization)
    if scores.shape != (height, width):
        logger.info(
            f"Resizing heatmap {heatmap_shape[1]}x{heatmap_shape[0]} -> {width}x{height} (nearest)"
        )
        scores = resize_nearest(scores, width, height)

    colors = apply_colormap(scores, settings.colormap)
    mask = threshold_mask(scores, settings.threshold)
    overlay = blend(base, colors, settings.opacity, mask=mask)

    return OverlayResult(
        rgba=overlay,
        heatmap_shape=heatmap_shape,
        used_synthetic_base=synthetic_base_used,
        used_synthetic_heatmap=synthetic_grid_used,
    )


def convert(
    dicom_path: Optional[PathLike],
    heatmap_path: Optional[PathLike],
    output_path: PathLike,
    settings: Optional[OverlaySettings] = None
) -> OverlayResult:
    """Render the overlay and write it to output_path as PNG."""
    result = render_overlay(dicom_path, heatmap_path, settings)
    save_png(output_path, result.rgba)
    width, height = result.size
    logger.info(f"Saved overlay {output_path} ({width}x{height})")
    return result


def convert_directory(
    input_dir: PathLike,
    heatmap_dir: Optional[PathLike],
    output_dir: PathLike,
    settings: Optional[OverlaySettings] = None
) -> BatchSummary:
    """
    Overlay every *.dcm in input_dir with the heatmap sharing its file stem.

    Args:
        input_dir: Directory of DICOM files
        heatmap_dir: Directory of heatmaps (defaults to input_dir)
        output_dir: Where <stem>_overlay.png files are written
        settings: Overlay settings

    Returns:
        BatchSummary of written and failed files
    """
    input_dir = Path(input_dir)
    heatmap_dir = Path(heatmap_dir) if heatmap_dir is not None else input_dir
    output_dir = Path(output_dir)
    settings = (settings or OverlaySettings()).validate()

    if not input_dir.is_dir():
        raise FileNotFoundError(f"Input directory not found: {input_dir}")

    dicom_files = sorted(p for p in input_dir.iterdir() if p.is_file() and p.suffix.lower() == ".dcm")
    if not dicom_files:
        raise FileNotFoundError(f"No .dcm files found in {input_dir}")

    logger.info(f"Found {len(dicom_files)} DICOM files in {input_dir}")
    summary = BatchSummary()

    for dicom_path in tqdm(dicom_files, desc=f"Overlaying {input_dir.name}"):
        heatmap_path = find_heatmap_for(dicom_path.stem, heatmap_dir)
        output_path = output_dir / f"{dicom_path.stem}_overlay.png"
        try:
            result = convert(dicom_path, heatmap_path, output_path, settings)
        except (DicomReadError, HeatmapFormatError, ValueError, OSError) as e:
            logger.error(f"Failed {dicom_path.name}: {e}")
            summary.failed.append((dicom_path, str(e)))
            continue

        if result.used_synthetic_heatmap:
            summary.synthetic_heatmaps += 1
        summary.written.append(output_path)

    logger.info(f"Wrote {len(summary.written)} overlays, {len(summary.failed)} failed")
    return summary
