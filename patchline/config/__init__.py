from .loader import load_config
from .models import (
    ApplyConfig,
    PatchDefaults,
    PatchlineConfig,
    PatchSpec,
)

__all__ = [
    "ApplyConfig",
    "PatchDefaults",
    "PatchSpec",
    "PatchlineConfig",
    "load_config",
]
