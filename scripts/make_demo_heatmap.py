#!/usr/bin/env python3
"""
Write the synthetic demo heatmap to a file, in any supported heatmap format.

Handy for trying the overlay without a model:
    python scripts/make_demo_heatmap.py --width 32 --height 32 --out demo.bin
"""

import argparse
import csv
import json
import sys
from pathlib import Path

import numpy as np

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dicom_heatmap.heatmap_io import HEATMAP_EXTENSIONS, save_heatmap_bin, synthetic_heatmap


def write_heatmap(path: Path, grid: np.ndarray) -> None:
    suffix = path.suffix.lower()
    if suffix == ".json":
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"data": grid.round(6).tolist()}, f)
    elif suffix == ".csv":
        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            for row in grid:
                writer.writerow([f"{v:.6f}" for v in row])
    elif suffix in (".bin", ".raw"):
        save_heatmap_bin(path, grid)
    elif suffix == ".npy":
        np.save(path, grid)
    else:
        raise ValueError(f"Unsupported extension {suffix!r}; use one of {', '.join(HEATMAP_EXTENSIONS)}")


def main():
    parser = argparse.ArgumentParser(description="Write the synthetic demo heatmap")
    parser.add_argument("--width", type=int, default=32, help="Grid width (default: 32)")
    parser.add_argument("--height", type=int, default=32, help="Grid height (default: 32)")
    parser.add_argument("--out", required=True,
                        help="Output file (.json, .csv, .bin, .raw or .npy)")
    args = parser.parse_args()

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    grid = synthetic_heatmap(args.width, args.height)
    write_heatmap(out, grid)
    print(f"✅ Saved: {out} ({args.width} x {args.height})")


if __name__ == "__main__":
    main()
