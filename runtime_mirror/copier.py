"""
Mirror engine for Runtime Mirror.

Performs the two observable effects on the target tree: copying a
source file over its mirrored path, and deleting a mirrored file once
its source is gone. Every operation is recorded in :class:`MirrorStats`.
No retries happen here; the caller decides the retry policy.
"""

import logging
import os
import shutil
import threading
import time
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

ACTION_COPY = "copy"
ACTION_DELETE = "delete"

_HISTORY_LIMIT = 1000


@dataclass
class MirrorRecord:
    """Record of a single copy or delete against the target tree."""
    action: str
    source: str
    target: str
    size_bytes: int = 0
    started: float = 0.0
    finished: float = 0.0
    success: bool = False
    skipped: bool = False
    error: str = ""

    @property
    def duration(self) -> float:
        if self.finished and self.started:
            return self.finished - self.started
        return 0.0


@dataclass
class MirrorStats:
    """Aggregated mirror statistics, safe to update from several threads."""
    total_copied: int = 0
    total_deleted: int = 0
    total_failed: int = 0
    total_skipped: int = 0
    total_bytes: int = 0
    last_target: str = ""
    history: list[MirrorRecord] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record(self, rec: MirrorRecord) -> None:
        with self._lock:
            self.history.append(rec)
            if rec.skipped:
                self.total_skipped += 1
            elif not rec.success:
                self.total_failed += 1
            elif rec.action == ACTION_COPY:
                self.total_copied += 1
                self.total_bytes += rec.size_bytes
                self.last_target = rec.target
            else:
                self.total_deleted += 1
                self.last_target = rec.target
            if len(self.history) > _HISTORY_LIMIT:
                self.history = self.history[-_HISTORY_LIMIT:]

    def summary(self) -> str:
        with self._lock:
            return (
                f"{self.total_copied} copied ({self.total_bytes:,} bytes), "
                f"{self.total_deleted} deleted, {self.total_failed} failed, "
                f"{self.total_skipped} skipped"
            )


class FileMirror:
    """
    Applies copy and delete operations to the target tree.

    Parameters
    ----------
    stats : MirrorStats, optional
        Where records are aggregated. A fresh instance is created if omitted.
    """

    def __init__(self, stats: MirrorStats | None = None):
        self.stats = stats if stats is not None else MirrorStats()

    def copy(self, source_path: str, target_path: str) -> MirrorRecord:
        """
        Copy *source_path* over *target_path*, replacing any existing content.

        Raises OSError if the source has vanished or the target directory
        does not exist; target directories are never created here.
        """
        rec = MirrorRecord(action=ACTION_COPY, source=source_path, target=target_path)
        rec.started = time.time()
        try:
            shutil.copyfile(source_path, target_path)
            rec.size_bytes = os.path.getsize(target_path)
            rec.success = True
            rec.finished = time.time()
            logger.debug(
                "Copied %s -> %s (%d bytes) in %.3fs",
                source_path, target_path, rec.size_bytes, rec.duration,
            )
        except OSError as exc:
            rec.error = str(exc)
            raise
        finally:
            rec.finished = rec.finished or time.time()
            self.stats.record(rec)
        return rec

    def delete(self, target_path: str) -> MirrorRecord:
        """Remove *target_path* if it is an existing file; a missing file is a no-op."""
        rec = MirrorRecord(action=ACTION_DELETE, source="", target=target_path)
        rec.started = time.time()
        try:
            if os.path.isfile(target_path):
                logger.info("Deleting file '%s'", target_path)
                os.remove(target_path)
                rec.success = True
            else:
                rec.skipped = True
                rec.error = "Target does not exist"
                logger.debug("Nothing to delete at %s", target_path)
        except FileNotFoundError:
            # removed between the check and the unlink
            rec.skipped = True
            rec.error = "Target does not exist"
        except OSError as exc:
            rec.error = str(exc)
            raise
        finally:
            rec.finished = time.time()
            self.stats.record(rec)
        return rec
