"""SSH key pair generation for git remotes."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from drawvault.vcs.models import KeyPair

logger = logging.getLogger(__name__)

KEY_FILE_NAME = "id_ed25519"


def generate_ed25519_key_pair(key_dir: Path, comment: str) -> KeyPair:
    """Create an Ed25519 key pair under ``key_dir`` in OpenSSH format.

    The private key is written with mode 0600 next to a ``.pub`` file. An
    existing pair at the same location is replaced.
    """
    key_dir = Path(key_dir).expanduser()
    key_dir.mkdir(parents=True, exist_ok=True)

    private_key = ed25519.Ed25519PrivateKey.generate()
    private_bytes = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.OpenSSH,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_bytes = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.OpenSSH,
        format=serialization.PublicFormat.OpenSSH,
    )
    public_key = f"{public_bytes.decode('ascii')} {comment}".strip()

    key_path = key_dir / KEY_FILE_NAME
    fd = os.open(key_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as f:
        f.write(private_bytes)
    os.chmod(key_path, 0o600)
    key_path.with_suffix(".pub").write_text(public_key + "\n", encoding="ascii")

    logger.info("generated ssh key pair at %s", key_path)
    return KeyPair(public_key=public_key, key_path=str(key_path))
