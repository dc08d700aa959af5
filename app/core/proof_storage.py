"""Storage for uploaded payment proof files."""

from __future__ import annotations

import asyncio
import logging
import mimetypes
import secrets
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


class ProofStorage(Protocol):
    async def save(self, content: bytes, *, content_type: str) -> str:
        """Persist content and return the URL it is served from."""


class LocalProofStorage:
    """Write proofs under a local directory with random file names."""

    def __init__(self, root: str | Path, *, public_prefix: str = "/uploads/payment-proofs") -> None:
        self._root = Path(root)
        self._public_prefix = public_prefix.rstrip("/")

    @staticmethod
    def _extension(content_type: str) -> str:
        return _EXTENSIONS.get(content_type) or mimetypes.guess_extension(content_type) or ".bin"

    def _write(self, path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    async def save(self, content: bytes, *, content_type: str) -> str:
        file_name = f"{secrets.token_hex(16)}{self._extension(content_type)}"
        await asyncio.to_thread(self._write, self._root / file_name, content)
        logger.info("Stored payment proof %s (%d bytes)", file_name, len(content))
        return f"{self._public_prefix}/{file_name}"


def validate_file(
    content_type: str | None,
    size: int,
    *,
    allowed_types: tuple[str, ...],
    max_bytes: int,
) -> dict[str, str]:
    """Check type and size of an uploaded file; returns field errors."""
    errors: dict[str, str] = {}
    normalized = (content_type or "").split(";")[0].strip().lower()
    if normalized not in allowed_types:
        errors["file"] = (
            f"File type {normalized or 'unknown'} not allowed. "
            f"Allowed types: {', '.join(allowed_types)}"
        )
    elif size > max_bytes:
        errors["file"] = (
            f"File size {size / 1024 / 1024:.2f}MB exceeds maximum "
            f"{max_bytes / 1024 / 1024:g}MB"
        )
    elif size == 0:
        errors["file"] = "File is empty"
    return errors
