"""Pydantic models for version-control data."""

from pydantic import BaseModel, ConfigDict, Field


class HistoryEntry(BaseModel):
    """One commit that touched a document."""

    model_config = ConfigDict(frozen=True)

    commit_id: str = Field(description="Full hex commit id")
    message: str
    timestamp: int = Field(description="Commit time in seconds since the epoch")
    author: str = "Unknown"


class KeyPair(BaseModel):
    """A generated SSH key pair; only the public half is returned in memory."""

    public_key: str = Field(description="OpenSSH public key line, comment included")
    key_path: str = Field(description="Path of the private key file")
