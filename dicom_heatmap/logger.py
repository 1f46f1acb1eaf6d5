import logging
from typing import Union

LOG_FORMAT = "%(levelname)-8s | %(filename)s:%(lineno)d | %(message)s"


def setup_logger(level: Union[int, str] = logging.DEBUG) -> logging.Logger:
    """Configure the root logger once for the command-line tools."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved

    root = logging.getLogger()
    root.setLevel(level)
    # Re-running main() in the same process must not stack handlers
    if not any(getattr(h, "_dicom_heatmap", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._dicom_heatmap = True
        root.addHandler(handler)
    return root
