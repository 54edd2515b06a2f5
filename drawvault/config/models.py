from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Literal

from drawvault.paths import validate_name


Theme = Literal["light", "dark", "system"]


# ── Application config (drawvault.yaml) ────────────────────────────


class StoreConfig(BaseModel):
    data_dir: str = "~/.local/share/drawvault"
    root_name: str = "drawings"

    @field_validator("root_name")
    @classmethod
    def _single_segment(cls, v: str) -> str:
        # The managed root is one directory directly under data_dir
        return validate_name(v)


class VCSConfig(BaseModel):
    provider: Literal["git"] = "git"
    author_name: str = "DrawVault"
    author_email: str = "drawvault@local.app"
    key_dir: str = "~/.drawvault/keys"


class DrawVaultConfig(BaseModel):
    store: StoreConfig = Field(default_factory=StoreConfig)
    vcs: VCSConfig = Field(default_factory=VCSConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"


# ── Per-root settings (.drawvault.json) ────────────────────────────


class _SettingsModel(BaseModel):
    """Serialized with camelCase keys; accepts either spelling on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GitConfig(_SettingsModel):
    remote_url: str = ""
    username: str = ""
    email: str = ""
    ssh_key_path: str | None = None


class AutoCommitConfig(_SettingsModel):
    enabled: bool = False
    interval: int = Field(default=5, gt=0, description="Minutes between automatic commits")
    message: str = Field(default="Auto-commit", min_length=1)


class StoreSettings(_SettingsModel):
    git_config: GitConfig = Field(default_factory=GitConfig)
    auto_commit_config: AutoCommitConfig = Field(default_factory=AutoCommitConfig)
    theme: Theme = "system"
