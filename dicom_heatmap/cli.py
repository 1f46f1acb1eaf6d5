"""
Overlay deep-learning heatmaps on DICOM images.

Single file:
    dicom-heatmap-overlay --dicom scan.dcm --heatmap scan.json --out scan_overlay.png

Batch (every *.dcm paired with the heatmap sharing its name):
    dicom-heatmap-overlay --input-dir dicoms/ --heatmap-dir heatmaps/ --out-dir overlays/
"""

import argparse
import logging
import sys

from .colormap import available_colormaps
from .config import OverlaySettings
from .dicom_io import DicomReadError
from .heatmap_io import HeatmapFormatError
from .logger import setup_logger
from .normalize import NORMALIZATION_METHODS
from .pipeline import convert, convert_directory

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Overlay a deep-learning heatmap on DICOM pixel data and save a PNG"
    )
    single = parser.add_argument_group("single file")
    single.add_argument("--dicom",
                        help="Path to the DICOM image (missing file -> synthetic demo image)")
    single.add_argument("--heatmap",
                        help="Heatmap file: .json, .csv, .bin/.raw or .npy "
                             "(missing file -> synthetic demo gradient)")
    single.add_argument("--out",
                        help="Output PNG path")

    batch = parser.add_argument_group("batch")
    batch.add_argument("--input-dir",
                       help="Directory of .dcm files to convert")
    batch.add_argument("--heatmap-dir",
                       help="Directory of heatmaps named after each DICOM (default: --input-dir)")
    batch.add_argument("--out-dir",
                       help="Directory for <name>_overlay.png files")

    parser.add_argument("--alpha", type=float, default=None,
                        help="Heatmap opacity 0.0-1.0 (default: $HEATMAP_OPACITY or 0.4)")
    parser.add_argument("--colormap", choices=available_colormaps(), default=None,
                        help="Colour gradient (default: $HEATMAP_COLORMAP or jet)")
    parser.add_argument("--normalize", dest="normalization", choices=NORMALIZATION_METHODS, default=None,
                        help="Score normalization (default: $HEATMAP_NORMALIZATION or minmax)")
    parser.add_argument("--threshold", type=float, default=None,
                        help="Only blend cells with normalized score >= threshold (default: 0.0)")
    parser.add_argument("--log-level", default="INFO",
                        help="Logging level (default: INFO)")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    batch_mode = args.input_dir is not None
    if batch_mode and not args.out_dir:
        parser.error("--input-dir requires --out-dir")
    if not batch_mode and not args.out:
        parser.error("either --out (single file) or --input-dir/--out-dir (batch) is required")

    try:
        setup_logger(args.log_level)
    except ValueError as e:
        parser.error(str(e))

    try:
        settings = OverlaySettings.from_env().override(
            opacity=args.alpha,
            colormap=args.colormap,
            normalization=args.normalization,
            threshold=args.threshold,
        ).validate()
    except ValueError as e:
        parser.error(str(e))

    print("=" * 70)
    print("Overlaying heatmap on DICOM")
    print("=" * 70)
    print(f"   opacity={settings.opacity}, colormap={settings.colormap}, "
          f"normalization={settings.normalization}, threshold={settings.threshold}")

    if batch_mode:
        try:
            summary = convert_directory(args.input_dir, args.heatmap_dir, args.out_dir, settings)
        except (FileNotFoundError, NotADirectoryError) as e:
            logger.error(str(e))
            return 1

        print("\n" + "=" * 70)
        print(f"✅ Wrote {len(summary.written)} overlays to {args.out_dir}")
        if summary.synthetic_heatmaps:
            print(f"   {summary.synthetic_heatmaps} used the synthetic demo heatmap")
        if summary.failed:
            print(f"❌ {len(summary.failed)} failed:")
            for path, reason in summary.failed:
                print(f"   {path.name}: {reason}")
        print("=" * 70)
        return 0 if summary.ok else 1

    try:
        result = convert(args.dicom, args.heatmap, args.out, settings)
    except (DicomReadError, HeatmapFormatError, ValueError, OSError) as e:
        logger.error(f"Conversion failed: {e}")
        return 1

    width, height = result.size
    print("\n" + "=" * 70)
    print(f"✅ Saved: {args.out}")
    print(f"   Dimensions: {width} x {height}")
    print(f"   Heatmap grid: {result.heatmap_shape[1]} x {result.heatmap_shape[0]}")
    print("=" * 70)
    return 0


if __name__ == "__main__":
    sys.exit(main())
