"""Per-root settings document stored at a reserved path inside the managed root."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from drawvault.config.models import StoreSettings

logger = logging.getLogger(__name__)

SETTINGS_FILE_NAME = ".drawvault.json"


class SettingsStore:
    """Loads and saves :class:`StoreSettings` as JSON.

    The file is absent on first run, in which case every field takes its
    default. Saves always rewrite the whole document.
    """

    def __init__(self, root: Path) -> None:
        self.path = Path(root) / SETTINGS_FILE_NAME

    def load(self) -> StoreSettings:
        """Read settings from disk, or defaults when the file does not exist.

        Raises ValueError when the file exists but is not valid settings JSON.
        """
        if not self.path.exists():
            logger.debug("no settings at %s, using defaults", self.path)
            return StoreSettings()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return StoreSettings.model_validate(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {self.path}: {e}") from e
        except ValidationError as e:
            raise ValueError(f"Invalid settings in {self.path}: {e}") from e

    def save(self, settings: StoreSettings) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(settings.model_dump(by_alias=True), indent=2)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(payload + "\n", encoding="utf-8")
        tmp.replace(self.path)
        logger.debug("saved settings to %s", self.path)
        return self.path
