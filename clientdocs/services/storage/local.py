"""Local filesystem storage backend."""

from __future__ import annotations

import logging
import shutil
import threading
from pathlib import Path
from typing import Optional

from .cancellation import raise_if_cancelled
from .exceptions import NotFoundError, StorageUnavailableError
from .interfaces import InboundFile, LocalWriteResult
from .paths import build_filename, current_millis, effective_root, path_in_root

logger = logging.getLogger(__name__)

# Exclusive-create attempts before giving up on a free name
MAX_NAME_ATTEMPTS = 1000


class LocalStorageBackend:
    """Writes documents under a root directory and resolves them back.

    The default root is fixed for the process; the configured root comes from
    the runtime configuration and may change between calls.
    """

    def __init__(self, default_root: str):
        self.default_root = str(Path(default_root))

    def root_for(self, configured_root: Optional[str]) -> str:
        return effective_root(configured_root, self.default_root)

    def write(self, file: InboundFile, root: str, *, cancel_event: Optional[threading.Event] = None) -> LocalWriteResult:
        """Copy the inbound stream into a new, uniquely named file under root.

        If root cannot be created or written, the write moves to the default
        root. StorageUnavailableError is raised when that fails as well.
        """
        candidates = [root]
        if Path(root).absolute() != Path(self.default_root).absolute():
            candidates.append(self.default_root)

        for index, candidate in enumerate(candidates):
            try:
                filename, dst, out_f = self._open_exclusive(Path(candidate), file.original_name)
            except OSError as exc:
                if index + 1 < len(candidates):
                    logger.warning(f"Root {candidate} unavailable ({exc}); writing to default root {self.default_root}")
                    continue
                raise StorageUnavailableError(f"No writable storage root for {file.original_name!r}: {exc}") from exc
            break

        try:
            with out_f:
                raise_if_cancelled(cancel_event, 'local write')
                shutil.copyfileobj(file.content, out_f)
        except BaseException as exc:
            # Never leave a partial file behind a failed or cancelled write
            dst.unlink(missing_ok=True)
            if isinstance(exc, OSError):
                raise StorageUnavailableError(f"Writing {dst} failed: {exc}") from exc
            raise
        logger.info(f"Stored {file.original_name!r} as {dst}")
        return LocalWriteResult(filename=filename, local_path=str(dst))

    def _open_exclusive(self, root_path: Path, original_name: Optional[str]):
        # Concurrent requests may race here; exist_ok makes it a no-op
        root_path.mkdir(parents=True, exist_ok=True)

        millis = current_millis()
        for _ in range(MAX_NAME_ATTEMPTS):
            filename = build_filename(original_name, millis)
            dst = root_path / filename
            try:
                return filename, dst, open(dst, 'xb')
            except FileExistsError:
                millis += 1

        raise FileExistsError(f"Could not find a free filename for {original_name!r} under {root_path}")

    def resolve_path(self, filename: str, configured_root: Optional[str], recorded_path: Optional[str] = None) -> Path:
        """Locate filename under the configured root, then the default root.

        recorded_path is the local path persisted when the file was written;
        it is tried last and only when its basename is filename, which covers
        files written under an earlier, non-default configured root.
        """
        primary = self.root_for(configured_root)
        candidates = [primary]
        if Path(primary).resolve() != Path(self.default_root).resolve():
            candidates.append(self.default_root)

        for index, root in enumerate(candidates):
            path = path_in_root(root, filename)
            if path is not None and path.is_file():
                if index > 0:
                    logger.warning(f"{filename} not under configured root {primary}; served from default root {root}")
                return path

        if recorded_path:
            path = Path(recorded_path)
            if path.name == filename and path.is_file():
                logger.warning(f"{filename} not under configured or default root; served from recorded path {path}")
                return path

        raise NotFoundError(f"File not found: {filename}")

    def resolve(self, filename: str, configured_root: Optional[str], recorded_path: Optional[str] = None) -> bytes:
        """Read the bytes of a stored file using the root resolution above."""
        return self.resolve_path(filename, configured_root, recorded_path).read_bytes()
