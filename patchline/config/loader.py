"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import PatchlineConfig


def load_config(cli_path: str | None = None) -> PatchlineConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults."""
    config_paths = [
        Path(cli_path) if cli_path else None,
        Path("./patchline.yaml"),
        Path.home() / ".patchline" / "config.yaml",
    ]

    for path in config_paths:
        if path and path.exists():
            try:
                with open(path) as f:
                    raw = yaml.safe_load(f)
                if raw is None:
                    continue
                raw = _expand_env_vars(raw)
                return PatchlineConfig(**raw)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
            except ValidationError as e:
                raise ValueError(f"Invalid config in {path}: {e}") from e

    return PatchlineConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `patchline config init`
DEFAULT_CONFIG_TEMPLATE = """\
# patchline.yaml

# Patch creation
patch:
  rename_root_directory: false   # rename the install dir to the new tree's name
  ignored_files: []              # relative paths (files or directories) to skip

# Patch application
apply:
  backup_dir: ".patchline/backup"
  revert_on_failure: true

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
