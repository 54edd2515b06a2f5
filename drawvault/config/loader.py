"""drawvault.yaml discovery and loading.

Values may reference environment variables as ``${VAR}``. Relative
``store.data_dir`` and ``vcs.key_dir`` are anchored at the directory of the
file that set them, so a project-local config keeps pointing at the same
drawings no matter where the CLI is run from.
"""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import DrawVaultConfig

PROJECT_CONFIG = "drawvault.yaml"
USER_CONFIG = Path("~/.drawvault/config.yaml")

# (section, key) pairs holding filesystem locations
_PATH_KEYS = (("store", "data_dir"), ("vcs", "key_dir"))


def config_candidates(cli_path: str | None = None) -> list[Path]:
    """Files consulted in order: CLI > project-local > user-global."""
    candidates = [Path(cli_path)] if cli_path else []
    candidates += [Path(PROJECT_CONFIG), USER_CONFIG.expanduser()]
    return candidates


def load_config(cli_path: str | None = None) -> DrawVaultConfig:
    """Load the first non-empty config file; defaults when there is none."""
    for path in config_candidates(cli_path):
        if not path.is_file():
            continue
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e
        if raw is None:
            continue
        if not isinstance(raw, dict):
            raise ValueError(f"Invalid config in {path}: expected a mapping, got {type(raw).__name__}")

        raw = _anchor_paths(_expand_env_vars(raw), path.resolve().parent)
        try:
            return DrawVaultConfig.model_validate(raw)
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e

    return DrawVaultConfig()


def _anchor_paths(raw: dict, base_dir: Path) -> dict:
    """Resolve relative location values against ``base_dir``.

    ``~`` and absolute paths are left alone; they expand at use.
    """
    for section, key in _PATH_KEYS:
        block = raw.get(section)
        if not isinstance(block, dict):
            continue
        value = block.get(key)
        if not isinstance(value, str) or not value or value.startswith("~"):
            continue
        if not Path(value).is_absolute():
            raw[section] = {**block, key: str((base_dir / value).resolve())}
    return raw


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `drawvault config init`
DEFAULT_CONFIG_TEMPLATE = """\
# drawvault.yaml

# Where drawings live: <data_dir>/<root_name> is the managed root
store:
  data_dir: "~/.local/share/drawvault"  # relative paths resolve next to this file
  root_name: "drawings"

# Version control
vcs:
  provider: "git"
  author_name: "DrawVault"           # used until user.name is configured
  author_email: "drawvault@local.app"
  key_dir: "~/.drawvault/keys"       # generated SSH keys, kept outside the root

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
