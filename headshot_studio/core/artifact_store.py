"""Ephemeral on-disk storage for request artifacts.

Artifacts are plain files in a single upload directory, named
``<id>_<role>[_<style>].<ext>``. The id is a fresh uuid4 per write and files
are opened in exclusive-create mode, so concurrent requests never touch each
other's files. Age for sweeping is the file's modification time.
"""

from __future__ import annotations

import time
import uuid
from pathlib import Path
from typing import Optional

from ..models.enums import ArtifactRole, StyleType
from ..models.schemas import ArtifactHandle
from ..utils.errors import ArtifactNotFoundError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ArtifactStore:
    """File-backed store with write, read, best-effort delete and sweep."""

    def __init__(self, root: Path, extension: str = "jpg"):
        self.root = Path(root)
        self.extension = extension
        self.ensure_root()

    def ensure_root(self) -> None:
        """Create the storage directory if it does not exist."""
        self.root.mkdir(parents=True, exist_ok=True)

    def _filename(self, artifact_id: str, role: ArtifactRole, style: Optional[StyleType]) -> str:
        parts = [artifact_id, role.value]
        if style is not None:
            parts.append(style.value)
        return "_".join(parts) + f".{self.extension}"

    def write(
        self,
        data: bytes,
        role: ArtifactRole,
        style: Optional[StyleType] = None,
    ) -> ArtifactHandle:
        """
        Persist bytes under a new unique identifier.

        Args:
            data: Bytes to store
            role: Role tag (original / normalized / generated)
            style: Style tag, used for generated artifacts

        Returns:
            Handle addressing the stored artifact
        """
        self.ensure_root()
        artifact_id = uuid.uuid4().hex
        path = self.root / self._filename(artifact_id, role, style)

        with open(path, "xb") as handle:
            handle.write(data)

        logger.debug(
            "Artifact written",
            extra={
                "artifact_id": artifact_id,
                "role": role.value,
                "style": style.value if style else None,
                "size": len(data),
            }
        )

        return ArtifactHandle(artifact_id=artifact_id, role=role, style=style, path=path)

    def read(self, handle: ArtifactHandle) -> bytes:
        """
        Read an artifact's bytes.

        Raises:
            ArtifactNotFoundError: Artifact missing (never written, deleted or swept)
        """
        try:
            return handle.path.read_bytes()
        except FileNotFoundError:
            raise ArtifactNotFoundError(
                f"Artifact {handle.artifact_id} ({handle.role.value}) not found",
                user_message="Failed to generate headshot: temporary image is no longer available",
            )

    def delete(self, handle: ArtifactHandle) -> bool:
        """
        Delete an artifact. Never raises.

        Returns:
            True if the file is gone afterwards (including already-missing files)
        """
        try:
            handle.path.unlink(missing_ok=True)
            logger.debug(
                "Artifact deleted",
                extra={"artifact_id": handle.artifact_id, "role": handle.role.value}
            )
            return True
        except OSError as e:
            logger.warning(
                f"Failed to delete artifact: {e}",
                extra={
                    "artifact_id": handle.artifact_id,
                    "role": handle.role.value,
                    "path": str(handle.path),
                    "error": str(e),
                }
            )
            return False

    def sweep(self, max_age_seconds: float, now: Optional[float] = None) -> int:
        """
        Delete artifacts older than ``max_age_seconds``.

        Individual failures are logged and skipped. Running it again with no
        new writes deletes nothing.

        Args:
            max_age_seconds: Age threshold based on modification time
            now: Reference time (epoch seconds), defaults to current time

        Returns:
            Number of artifacts deleted
        """
        if not self.root.exists():
            return 0

        now = time.time() if now is None else now
        deleted = 0

        for path in self.root.iterdir():
            try:
                if not path.is_file():
                    continue
                age = now - path.stat().st_mtime
                if age <= max_age_seconds:
                    continue
                path.unlink()
                deleted += 1
                logger.info(
                    f"Cleaned up old artifact: {path.name}",
                    extra={"artifact": path.name, "age_seconds": round(age, 1)}
                )
            except FileNotFoundError:
                # Removed concurrently by its own request.
                continue
            except OSError as e:
                logger.warning(
                    f"Failed to sweep artifact {path.name}: {e}",
                    extra={"artifact": path.name, "error": str(e)}
                )

        return deleted
