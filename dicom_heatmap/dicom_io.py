"""
DICOM decoding.

Reads pixel data with pydicom and turns it into an 8-bit RGBA base image
for compositing.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np
import pydicom
from pydicom.errors import InvalidDicomError

logger = logging.getLogger(__name__)


class DicomReadError(RuntimeError):
    """Raised when a DICOM file exists but its pixel data cannot be decoded."""


@dataclass
class DicomImage:
    pixels: np.ndarray
    bits_stored: int
    photometric: str
    rows: int
    columns: int
    path: str = ""

    @property
    def is_color(self) -> bool:
        return self.pixels.ndim == 3


def load_dicom_image(path: Union[str, Path]) -> DicomImage:
    """
    Load a DICOM file and return its first frame with the metadata needed
    to render it.

    Args:
        path: DICOM file path

    Returns:
        DicomImage with pixels [H, W] (grayscale) or [H, W, 3] (colour)
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"DICOM file not found: {path}")

    try:
        ds = pydicom.dcmread(str(path))
        pixels = ds.pixel_array
    except (InvalidDicomError, AttributeError, ValueError, RuntimeError, NotImplementedError) as e:
        raise DicomReadError(f"Could not decode DICOM pixel data from {path}: {e}") from e

    samples = int(getattr(ds, "SamplesPerPixel", 1) or 1)
    frames = int(getattr(ds, "NumberOfFrames", 1) or 1)

    # Multi-frame data comes back with a leading frame axis
    if frames > 1:
        logger.info(f"{path.name}: {frames} frames, using frame 0")
        pixels = pixels[0]

    if samples not in (1, 3):
        raise DicomReadError(f"{path}: unsupported SamplesPerPixel={samples}")
    if samples == 1 and pixels.ndim != 2:
        raise DicomReadError(f"{path}: unexpected grayscale pixel shape {pixels.shape}")
    if samples == 3 and (pixels.ndim != 3 or pixels.shape[2] != 3):
        raise DicomReadError(f"{path}: unexpected colour pixel shape {pixels.shape}")

    bits_stored = int(getattr(ds, "BitsStored", 0) or getattr(ds, "BitsAllocated", 0) or 8)
    photometric = str(getattr(ds, "PhotometricInterpretation", "") or "MONOCHROME2").strip()

    image = DicomImage(
        pixels=pixels,
        bits_stored=bits_stored,
        photometric=photometric,
        rows=int(pixels.shape[0]),
        columns=int(pixels.shape[1]),
        path=str(path),
    )
    logger.debug(f"Loaded DICOM {path.name}: {image.columns}x{image.rows}, "
                 f"{bits_stored}-bit {photometric}")
    return image


def _grayscale_to_uint8(pixels: np.ndarray) -> np.ndarray:
    img = pixels.astype(np.float32)
    pmin, pmax = float(img.min()), float(img.max())
    if pmax > pmin:
        return np.rint((img - pmin) / (pmax - pmin) * 255.0).astype(np.uint8)
    return np.zeros(img.shape, dtype=np.uint8)


def to_rgba(image: DicomImage) -> np.ndarray:
    """
    Render decoded DICOM pixels as an opaque 8-bit RGBA buffer.

    Grayscale data is min-max scaled to the full 8-bit range and inverted for
    MONOCHROME1. Colour data deeper than 8 bits is scaled by its bit depth.

    Returns:
        rgba: uint8 [H, W, 4]
    """
    if image.is_color:
        rgb = image.pixels.astype(np.float32)
        if image.bits_stored > 8:
            rgb = rgb / float(2 ** image.bits_stored - 1) * 255.0
        rgb = np.clip(np.rint(rgb), 0, 255).astype(np.uint8)
    else:
        gray = _grayscale_to_uint8(image.pixels)
        if image.photometric == "MONOCHROME1":
            gray = 255 - gray
        rgb = np.repeat(gray[:, :, np.newaxis], 3, axis=2)

    alpha = np.full(rgb.shape[:2] + (1,), 255, dtype=np.uint8)
    return np.concatenate([rgb, alpha], axis=2)


def synthetic_base(width: int, height: int) -> np.ndarray:
    """Demo base image: opaque grayscale ramp, dark at the top."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Image size must be positive, got {width}x{height}")
    ramp = np.linspace(0, 255, height, dtype=np.float32)
    gray = np.rint(np.repeat(ramp[:, np.newaxis], width, axis=1)).astype(np.uint8)
    rgba = np.empty((height, width, 4), dtype=np.uint8)
    rgba[..., :3] = gray[:, :, np.newaxis]
    rgba[..., 3] = 255
    return rgba
