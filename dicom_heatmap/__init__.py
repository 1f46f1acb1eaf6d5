"""
DICOM heatmap overlay.

Composites a deep-learning heatmap over DICOM pixel data and writes a PNG.
"""

__version__ = '0.1.0'
