#!/usr/bin/env python3
"""
Overlay a heatmap on a DICOM image (or a directory of them) and save PNGs.

Same as the dicom-heatmap-overlay command; usable from a checkout without
installing the package.
"""

import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dicom_heatmap.cli import main


if __name__ == "__main__":
    sys.exit(main())
