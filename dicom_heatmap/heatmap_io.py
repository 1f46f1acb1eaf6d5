"""
Heatmap loading.

A heatmap is a 2-D grid of float scores. Supported files:

- .json   rows as nested lists, {"data": [[...]]}, or
          {"width": W, "height": H, "data": [flat row-major list]}
- .csv    one row per line, comma separated
- .bin    little-endian uint32 width, uint32 height, then width*height float32
  .raw    (row-major)
- .npy    2-D array written by numpy.save
"""

import csv
import json
import logging
import struct
from pathlib import Path
from typing import List, Optional, Union

import numpy as np

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

BIN_HEADER = struct.Struct("<II")
HEATMAP_EXTENSIONS = (".json", ".csv", ".bin", ".raw", ".npy")


class HeatmapFormatError(ValueError):
    """Raised when a heatmap file exists but cannot be parsed."""


def _as_grid(rows, source: str) -> np.ndarray:
    if not isinstance(rows, (list, tuple)) or len(rows) == 0:
        raise HeatmapFormatError(f"{source}: heatmap has no rows")

    width = None
    for i, row in enumerate(rows):
        if not isinstance(row, (list, tuple)):
            raise HeatmapFormatError(f"{source}: row {i} is not a list")
        if width is None:
            width = len(row)
        elif len(row) != width:
            raise HeatmapFormatError(
                f"{source}: row {i} has {len(row)} values, expected {width}"
            )
        for j, cell in enumerate(row):
            # bool is an int subclass; strings and nested lists are not scores
            if isinstance(cell, bool) or not isinstance(cell, (int, float)):
                raise HeatmapFormatError(
                    f"{source}: non-numeric value {cell!r} at row {i}, column {j}"
                )
    if not width:
        raise HeatmapFormatError(f"{source}: heatmap rows are empty")

    try:
        grid = np.array(rows, dtype=np.float32)
    except OverflowError as e:
        raise HeatmapFormatError(f"{source}: value out of range ({e})")
    return _check_finite(grid, source)


def _check_finite(grid: np.ndarray, source: str) -> np.ndarray:
    if not np.all(np.isfinite(grid)):
        raise HeatmapFormatError(f"{source}: heatmap contains NaN or infinite values")
    return grid


def load_json_heatmap(path: PathLike) -> np.ndarray:
    source = str(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except json.JSONDecodeError as e:
        raise HeatmapFormatError(f"{source}: invalid JSON ({e})")
    except UnicodeDecodeError as e:
        raise HeatmapFormatError(f"{source}: not UTF-8 text ({e})")

    if isinstance(payload, dict):
        if "data" not in payload:
            raise HeatmapFormatError(f"{source}: JSON object has no 'data' key")
        data = payload["data"]
        if "width" in payload or "height" in payload:
            try:
                width, height = int(payload["width"]), int(payload["height"])
            except (KeyError, TypeError, ValueError):
                raise HeatmapFormatError(f"{source}: 'width' and 'height' must both be integers")
            if width <= 0 or height <= 0:
                raise HeatmapFormatError(f"{source}: invalid dimensions {width}x{height}")
            if not isinstance(data, list) or len(data) != width * height:
                raise HeatmapFormatError(
                    f"{source}: expected {width * height} values for {width}x{height}"
                )
            data = [data[r * width:(r + 1) * width] for r in range(height)]
        return _as_grid(data, source)

    return _as_grid(payload, source)


def load_csv_heatmap(path: PathLike) -> np.ndarray:
    rows: List[List[float]] = []
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            for line_no, row in enumerate(csv.reader(f), start=1):
                cells = [c.strip() for c in row]
                if not any(cells):
                    continue
                try:
                    rows.append([float(c) for c in cells])
                except ValueError:
                    raise HeatmapFormatError(f"{path}: line {line_no} has a non-numeric value")
    except UnicodeDecodeError as e:
        raise HeatmapFormatError(f"{path}: not UTF-8 text ({e})")
    return _as_grid(rows, str(path))


def load_bin_heatmap(path: PathLike) -> np.ndarray:
    with open(path, "rb") as f:
        blob = f.read()

    if len(blob) < BIN_HEADER.size:
        raise HeatmapFormatError(f"{path}: file too short for the {BIN_HEADER.size}-byte header")
    width, height = BIN_HEADER.unpack_from(blob)
    if width == 0 or height == 0:
        raise HeatmapFormatError(f"{path}: invalid dimensions {width}x{height}")

    expected = width * height * 4
    payload = blob[BIN_HEADER.size:]
    if len(payload) != expected:
        raise HeatmapFormatError(
            f"{path}: expected {expected} bytes of float32 data for {width}x{height}, got {len(payload)}"
        )
    grid = np.frombuffer(payload, dtype="<f4").reshape(height, width).astype(np.float32)
    return _check_finite(grid, str(path))


def load_npy_heatmap(path: PathLike) -> np.ndarray:
    try:
        grid = np.load(path, allow_pickle=False)
    except (ValueError, EOFError, OSError) as e:
        # An empty or truncated file raises EOFError
        raise HeatmapFormatError(f"{path}: not a readable .npy array ({e})")
    if not isinstance(grid, np.ndarray):
        raise HeatmapFormatError(f"{path}: expected a single .npy array, not an archive")
    if grid.ndim != 2 or grid.size == 0:
        raise HeatmapFormatError(f"{path}: expected a non-empty 2-D array, got shape {grid.shape}")
    try:
        grid = grid.astype(np.float32)
    except (TypeError, ValueError) as e:
        raise HeatmapFormatError(f"{path}: non-numeric array ({e})")
    return _check_finite(grid, str(path))


_LOADERS = {
    ".json": load_json_heatmap,
    ".csv": load_csv_heatmap,
    ".bin": load_bin_heatmap,
    ".raw": load_bin_heatmap,
    ".npy": load_npy_heatmap,
}


def load_heatmap(path: PathLike) -> np.ndarray:
    """
    Load a heatmap grid, picking the parser from the file extension.

    Args:
        path: Heatmap file

    Returns:
        heatmap: float32 [rows, cols]
    """
    path = Path(path)
    loader = _LOADERS.get(path.suffix.lower())
    if loader is None:
        raise HeatmapFormatError(
            f"{path}: unsupported heatmap extension {path.suffix!r} "
            f"(expected one of {', '.join(HEATMAP_EXTENSIONS)})"
        )
    if not path.is_file():
        raise FileNotFoundError(f"Heatmap not found: {path}")

    grid = loader(path)
    logger.debug(f"Loaded heatmap {path.name}: {grid.shape[1]}x{grid.shape[0]}, "
                 f"min={grid.min():.4f}, max={grid.max():.4f}")
    return grid


def save_heatmap_bin(path: PathLike, grid: np.ndarray) -> None:
    """Write a 2-D grid in the little-endian binary heatmap format."""
    grid = np.asarray(grid, dtype="<f4")
    if grid.ndim != 2 or grid.size == 0:
        raise ValueError(f"Expected a non-empty 2-D grid, got shape {grid.shape}")
    height, width = grid.shape
    with open(path, "wb") as f:
        f.write(BIN_HEADER.pack(width, height))
        f.write(np.ascontiguousarray(grid).tobytes())


def synthetic_heatmap(width: int, height: int) -> np.ndarray:
    """
    Demo heatmap: a diagonal ramp with a radial hot spot right of centre.
    Used in place of a missing heatmap file.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Heatmap size must be positive, got {width}x{height}")
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float32)
    ramp = (xs / max(width - 1, 1) + ys / max(height - 1, 1)) / 2.0

    cx, cy = width * 0.6, height * 0.4
    sigma = max(min(width, height) / 5.0, 1.0)
    spot = np.exp(-((xs - cx) ** 2 + (ys - cy) ** 2) / (2.0 * sigma * sigma))

    heatmap = 0.4 * ramp + 0.6 * spot
    return heatmap.astype(np.float32)


def find_heatmap_for(stem: str, heatmap_dir: PathLike) -> Optional[Path]:
    """First existing heatmap named <stem>.<ext>, in HEATMAP_EXTENSIONS order."""
    heatmap_dir = Path(heatmap_dir)
    for ext in HEATMAP_EXTENSIONS:
        candidate = heatmap_dir / f"{stem}{ext}"
        if candidate.is_file():
            return candidate
    return None
