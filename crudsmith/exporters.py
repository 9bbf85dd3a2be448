# File: crudsmith/exporters.py
"""
crudsmith - File Writer
========================

Responsible for:
    1. Writing generated artifacts under the project root, atomically
       (write-to-temp then rename).
    2. Never overwriting an existing file unless ``force`` is set.
    3. Appending route registration blocks to an existing routes file,
       at most once per identifier.

The writer never creates a routes file: when it is missing the append is
reported as ``MISSING`` and the run carries on.

With ``dry_run`` every outcome is computed exactly as for a real run, but
nothing is written.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from crudsmith.models import GeneratedArtifact, WriteOutcome, WriteStatus
from crudsmith.utils import count_lines

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudsmith.exporters")


class ArtifactExporter:
    """
    Writes artifacts relative to a project root.

    Usage::

        exporter = ArtifactExporter(Path("."))
        outcome = exporter.export(artifact, force=False)
        print(outcome.status)

    Thread-safety: NOT thread-safe. Use one exporter per run.
    """

    def __init__(self, root: Path, dry_run: bool = False) -> None:
        self._root: Path = Path(root).resolve()
        self._dry_run: bool = dry_run
        self.outcomes: List[WriteOutcome] = []

    @property
    def root(self) -> Path:
        return self._root

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    def resolve(self, rel_path: str) -> Path:
        return self._root / rel_path

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def export(self, artifact: GeneratedArtifact, force: bool = False) -> WriteOutcome:
        """Write or append *artifact*, depending on its ``append`` flag."""
        if artifact.append:
            return self.append_routes(
                artifact.path,
                artifact.content,
                artifact.identifier or artifact.content.strip(),
                force=force,
            )
        return self.write(artifact.path, artifact.content, force=force)

    def write(self, path: str, content: str, force: bool = False) -> WriteOutcome:
        """
        Write *content* to *path* (relative to the root).

        An existing file is left byte-for-byte untouched unless *force*.

        Returns:
            ``WRITTEN`` or ``SKIPPED``.
        """
        target: Path = self.resolve(path)
        if target.exists() and not force:
            logger.warning("File exists, skipped (use --force to overwrite): %s", path)
            return self._record(path, WriteStatus.SKIPPED)

        if not self._dry_run:
            target.parent.mkdir(parents=True, exist_ok=True)
            self._atomic_write(target, content.encode("utf-8"))
        logger.info("Wrote %s (%d lines).", path, count_lines(content))
        return self._record(path, WriteStatus.WRITTEN)

    def append_routes(
        self,
        path: str,
        block: str,
        identifier: str,
        force: bool = False,
    ) -> WriteOutcome:
        """
        Append *block* to the routes file at *path*.

        Returns:
            ``MISSING`` when the file does not exist (it is never created),
            ``ALREADY_PRESENT`` when *identifier* is found and not *force*,
            ``APPENDED`` otherwise.
        """
        target: Path = self.resolve(path)
        if not target.is_file():
            logger.warning("Routes file not found, block not registered: %s", path)
            return self._record(path, WriteStatus.MISSING)

        existing: str = target.read_text(encoding="utf-8")
        if identifier in existing and not force:
            logger.info("Routes already registered in %s (%s).", path, identifier)
            return self._record(path, WriteStatus.ALREADY_PRESENT)

        separator: str = "" if not existing or existing.endswith("\n") else "\n"
        if not self._dry_run:
            self._atomic_write(target, (existing + separator + block).encode("utf-8"))
        logger.info("Appended routes to %s.", path)
        return self._record(path, WriteStatus.APPENDED)

    # -----------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------

    def _record(self, path: str, status: WriteStatus) -> WriteOutcome:
        outcome: WriteOutcome = WriteOutcome(path=path, status=status)
        self.outcomes.append(outcome)
        return outcome

    @staticmethod
    def _atomic_write(target_path: Path, data: bytes) -> None:
        """
        Write data to target_path atomically using a temporary file.

        The temp file lives in the target's directory so ``os.replace``
        stays on one filesystem (atomic on POSIX).
        """
        fd: int = -1
        tmp_path: Optional[str] = None
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=str(target_path.parent),
                prefix=f".{target_path.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "wb") as handle:
                fd = -1
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())

            os.replace(tmp_path, str(target_path))
            tmp_path = None
        finally:
            if fd >= 0:
                os.close(fd)
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)


__all__: List[str] = ["ArtifactExporter"]

logger.debug("crudsmith.exporters loaded (%d public symbols).", len(__all__))
