"""
Overlay settings.

Defaults live here; environment variables override them and command-line
flags override the environment.
"""

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

DEFAULT_OPACITY = 0.4
DEFAULT_COLORMAP = "jet"
DEFAULT_NORMALIZATION = "minmax"
DEFAULT_THRESHOLD = 0.0
DEFAULT_DEMO_SIZE = 512

ENV_OPACITY = "HEATMAP_OPACITY"
ENV_COLORMAP = "HEATMAP_COLORMAP"
ENV_NORMALIZATION = "HEATMAP_NORMALIZATION"
ENV_THRESHOLD = "HEATMAP_THRESHOLD"
ENV_DEMO_SIZE = "HEATMAP_DEMO_SIZE"


@dataclass(frozen=True)
class OverlaySettings:
    opacity: float = DEFAULT_OPACITY
    colormap: str = DEFAULT_COLORMAP
    normalization: str = DEFAULT_NORMALIZATION
    threshold: float = DEFAULT_THRESHOLD
    demo_width: int = DEFAULT_DEMO_SIZE
    demo_height: int = DEFAULT_DEMO_SIZE

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "OverlaySettings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            OverlaySettings with unset variables left at their defaults
        """
        env = os.environ if environ is None else environ

        def _number(name, default, cast):
            raw = env.get(name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return cast(raw)
            except ValueError:
                raise ValueError(f"{name} must be a number, got {raw!r}")

        demo_size = _number(ENV_DEMO_SIZE, DEFAULT_DEMO_SIZE, int)
        return cls(
            opacity=_number(ENV_OPACITY, DEFAULT_OPACITY, float),
            colormap=env.get(ENV_COLORMAP) or DEFAULT_COLORMAP,
            normalization=env.get(ENV_NORMALIZATION) or DEFAULT_NORMALIZATION,
            threshold=_number(ENV_THRESHOLD, DEFAULT_THRESHOLD, float),
            demo_width=demo_size,
            demo_height=demo_size,
        )

    def override(self, **changes) -> "OverlaySettings":
        """Return a copy with every non-None keyword applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def validate(self) -> "OverlaySettings":
        # Imported here so config stays importable without the numeric stack
        from .colormap import available_colormaps
        from .normalize import NORMALIZATION_METHODS

        if not 0.0 <= self.opacity <= 1.0:
            raise ValueError(f"opacity must be in [0, 1], got {self.opacity}")
        if not 0.0 <= self.threshold <= 1.0:
            raise ValueError(f"threshold must be in [0, 1], got {self.threshold}")
        if self.colormap not in available_colormaps():
            raise ValueError(
                f"Unknown colormap {self.colormap!r}; choose from {', '.join(available_colormaps())}"
            )
        if self.normalization not in NORMALIZATION_METHODS:
            raise ValueError(
                f"Unknown normalization {self.normalization!r}; "
                f"choose from {', '.join(NORMALIZATION_METHODS)}"
            )
        if self.demo_width <= 0 or self.demo_height <= 0:
            raise ValueError("demo image size must be positive")
        return self
