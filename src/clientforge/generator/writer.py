"""All-or-nothing writes for a batch of generated files.

A generation run produces several modules that only make sense together
(the operations module imports names from the types module). Writing them
one by one could leave a new ``api_operations.py`` next to a stale
``api_types.py`` if the process fails half way. :class:`TransactionalWriter`
stages every file in a temporary directory inside the output folder and
only promotes them with ``os.replace`` once all of them were staged.

Usage::

    with TransactionalWriter(paths.folder) as tx:
        tx.stage(paths.types, types_source)
        tx.stage(paths.operations, operations_source)
    # both files replaced here, or neither on error
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from types import TracebackType
from typing import Optional

from clientforge.exceptions import OutputError


class TransactionalWriter:
    """Stage files, then promote all of them or none.

    Promotion moves any existing targets aside first, so a failure during
    promotion restores the previous files as well.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self._stage_dir: Optional[Path] = None
        self._staged: list[tuple[Path, Path]] = []
        self._committed = False

    @property
    def staged(self) -> list[Path]:
        """Target paths staged so far, in staging order."""
        return [target for target, _ in self._staged]

    def _ensure_stage_dir(self) -> Path:
        if self._stage_dir is None:
            try:
                self.root.mkdir(parents=True, exist_ok=True)
                self._stage_dir = Path(
                    tempfile.mkdtemp(dir=self.root, prefix=".clientforge-stage-")
                )
            except OSError as exc:
                raise OutputError(str(self.root), f"Cannot create staging directory: {exc}") from exc
        return self._stage_dir

    def stage(self, target: Path, content: str) -> None:
        """Write *content* to the staging area for *target*.

        Raises:
            OutputError: If the staged copy cannot be written.
        """
        if self._committed:
            raise RuntimeError("Cannot stage files after commit")
        stage_dir = self._ensure_stage_dir()
        staged_path = stage_dir / f"{len(self._staged)}-{Path(target).name}"
        try:
            staged_path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise OutputError(str(target), f"Failed to stage file: {exc}") from exc
        self._staged.append((Path(target), staged_path))

    def commit(self) -> list[Path]:
        """Promote every staged file onto its target.

        Returns:
            The target paths written.

        Raises:
            OutputError: If any promotion fails. Targets already promoted
                are restored from their backups before raising.
        """
        if self._committed:
            return self.staged
        if not self._staged:
            self._cleanup()
            self._committed = True
            return []

        stage_dir = self._ensure_stage_dir()
        backups: list[tuple[Path, Optional[Path]]] = []
        current: Optional[Path] = None
        try:
            for index, (target, staged_path) in enumerate(self._staged):
                current = target
                target.parent.mkdir(parents=True, exist_ok=True)
                backup: Optional[Path] = None
                if target.exists():
                    backup = stage_dir / f"backup-{index}-{target.name}"
                    os.replace(target, backup)
                backups.append((target, backup))
                os.replace(staged_path, target)
        except OSError as exc:
            self._restore(backups)
            self._cleanup()
            raise OutputError(str(current), f"Failed to write file: {exc}") from exc

        self._committed = True
        self._cleanup()
        return self.staged

    def rollback(self) -> None:
        """Discard everything staged; targets are left untouched."""
        self._staged.clear()
        self._cleanup()

    @staticmethod
    def _restore(backups: list[tuple[Path, Optional[Path]]]) -> None:
        for target, backup in reversed(backups):
            try:
                if backup is not None:
                    os.replace(backup, target)
                elif target.exists():
                    target.unlink()
            except OSError:
                continue

    def _cleanup(self) -> None:
        if self._stage_dir is not None:
            shutil.rmtree(self._stage_dir, ignore_errors=True)
            self._stage_dir = None

    def __enter__(self) -> "TransactionalWriter":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if exc_type is not None:
            self.rollback()
            return
        self.commit()
