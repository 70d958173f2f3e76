"""File system watcher for Runtime Mirror.

Uses the watchdog library to watch the source tree for one glob
pattern, turns raw notifications into :class:`ChangeEvent` objects and
feeds them through a bounded queue to a single worker thread, which
maps each path into the target tree and mirrors it.
"""

from __future__ import annotations

import enum
import logging
import os
import queue
import threading
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from runtime_mirror.config import WATCH_PER_DIRECTORY, MirrorConfig
from runtime_mirror.copier import FileMirror
from runtime_mirror.filters import Filter
from runtime_mirror.paths import PathOutsideRootError, to_target

logger = logging.getLogger(__name__)

# How long blocking queue calls wait before re-checking the stop flag
_POLL_SECONDS = 0.5


class ChangeKind(enum.Enum):
    CREATED = "Created"
    MODIFIED = "Modified"
    RENAMED = "Renamed"
    DELETED = "Deleted"


_KIND_BY_EVENT_TYPE = {
    EVENT_TYPE_CREATED: ChangeKind.CREATED,
    EVENT_TYPE_MODIFIED: ChangeKind.MODIFIED,
    EVENT_TYPE_MOVED: ChangeKind.RENAMED,
    EVENT_TYPE_DELETED: ChangeKind.DELETED,
}

# Used in the failure message for each kind
_FAILURE_ACTION = {
    ChangeKind.CREATED: "copy created",
    ChangeKind.MODIFIED: "copy changed",
    ChangeKind.RENAMED: "copy renamed",
    ChangeKind.DELETED: "delete",
}


@dataclass(frozen=True)
class ChangeEvent:
    """A single file change, as seen by one watch."""
    kind: ChangeKind
    full_path: str
    watch_root: str


@dataclass
class WatchNode:
    """One (directory, pattern) pair and the watchdog handle bound to it."""
    directory: str
    pattern: str
    handle: Any | None = None


def discover_directories(root: str, filt: Filter) -> Iterator[str]:
    """
    Yield *root* and every directory below it, skipping blacklisted names.

    A blacklisted directory is never entered, so nothing beneath it is
    yielded. A blacklisted *root* yields nothing at all.
    """
    if filt.is_directory_blacklisted(os.path.basename(root.rstrip(os.sep))):
        return
    for dirpath, dirnames, _ in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not filt.is_directory_blacklisted(d))
        yield dirpath


def to_change_event(event: FileSystemEvent, watch_root: str) -> ChangeEvent | None:
    """
    Translate a watchdog event into a :class:`ChangeEvent`.

    Directory events and event types other than create/modify/move/delete
    (opened, closed...) return ``None``. A move is reported as a rename of
    its destination path.
    """
    if event.is_directory:
        return None
    kind = _KIND_BY_EVENT_TYPE.get(event.event_type)
    if kind is None:
        return None
    path = event.dest_path if kind is ChangeKind.RENAMED else event.src_path
    return ChangeEvent(kind=kind, full_path=os.fsdecode(path), watch_root=watch_root)


class MirrorEventHandler(FileSystemEventHandler):
    """Watchdog handler that forwards file events of one watch to its tree."""

    def __init__(self, tree: WatchTree, watch_root: str):
        super().__init__()
        self._tree = tree
        self._watch_root = watch_root

    def _forward(self, event: FileSystemEvent) -> None:
        change = to_change_event(event, self._watch_root)
        if change is not None:
            self._tree.submit(change)

    def on_created(self, event: FileSystemEvent) -> None:
        self._forward(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._forward(event)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._forward(event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._forward(event)


class WatchTree:
    """
    Watches the source tree for one pattern and mirrors matching files.

    In recursive mode a single watch covers the whole source tree and
    blacklisted directories are filtered per event, so directories created
    after startup are picked up. In per-directory mode one watch is
    installed per existing, non-blacklisted directory at start.

    Events are queued and handled one at a time by a worker thread. When
    the queue is full the notifying thread waits for room rather than
    dropping the event.

    Usage:
        tree = WatchTree(config, "*.json", FileMirror())
        tree.start()
        ...
        tree.stop()
    """

    def __init__(
        self,
        config: MirrorConfig,
        pattern: str,
        mirror: FileMirror,
        *,
        watch_mode: str | None = None,
    ):
        self.config = config
        self.pattern = pattern
        self.watch_mode = watch_mode or config.watch_mode
        self.nodes: list[WatchNode] = []
        self._mirror = mirror
        self._filter = Filter.from_config(config)
        self._queue: queue.Queue[ChangeEvent] = queue.Queue(maxsize=config.queue_size)
        self._stop = threading.Event()
        self._observer: Any | None = None
        self._worker: threading.Thread | None = None

    @property
    def source_root(self) -> str:
        return self.config.source_root

    # ---- lifecycle ----

    def start(self) -> None:
        """Install the watches and start the worker."""
        if self._observer is not None:
            return
        root = self.source_root
        if not os.path.isdir(root):
            logger.error("Source directory does not exist: %s", root)
            raise FileNotFoundError(f"Source directory does not exist: {root}")

        self._stop.clear()
        per_directory = self.watch_mode == WATCH_PER_DIRECTORY
        if per_directory:
            directories = list(discover_directories(root, self._filter))
        elif self._filter.is_directory_blacklisted(os.path.basename(root)):
            directories = []
        else:
            directories = [root]

        observer = Observer()
        for directory in directories:
            handler = MirrorEventHandler(self, directory)
            handle = observer.schedule(handler, directory, recursive=not per_directory)
            self.nodes.append(WatchNode(directory, self.pattern, handle))
            logger.info("Created watcher for %s '%s'", self.pattern, directory)

        # The worker only exists once the observer is running
        try:
            observer.start()
        except Exception:
            self.nodes.clear()
            raise
        self._observer = observer

        self._worker = threading.Thread(
            target=self._run, daemon=True, name=f"WatchTree-{self.pattern}"
        )
        self._worker.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Remove the watches, let the worker finish queued events, and join it."""
        if self._observer:
            self._observer.stop()
            self._observer.join(timeout=timeout)
            self._observer = None
        for node in self.nodes:
            node.handle = None
        self.nodes.clear()

        self._stop.set()
        if self._worker:
            self._worker.join(timeout=timeout)
            if self._worker.is_alive():
                logger.warning(
                    "Worker for %s still busy after %.0fs; %d event(s) pending",
                    self.pattern, timeout, self.pending_count,
                )
            self._worker = None
        logger.info("Watcher for %s stopped.", self.pattern)

    @property
    def is_running(self) -> bool:
        """Return whether the watches are currently active."""
        return self._observer is not None and self._observer.is_alive()

    @property
    def pending_count(self) -> int:
        """Return the number of queued events not yet handled."""
        return self._queue.qsize()

    # ---- dispatch ----

    def accepts(self, path: str) -> bool:
        """Return whether a change to *path* concerns this tree."""
        if not self._filter.matches_pattern(path, self.pattern):
            return False
        try:
            return not self._filter.is_under_blacklisted_directory(self.source_root, path)
        except PathOutsideRootError:
            logger.debug("Ignoring %s (outside %s)", path, self.source_root)
            return False

    def submit(self, change: ChangeEvent) -> bool:
        """
        Queue *change* for the worker if it passes the filters.

        Blocks while the queue is full. Returns False if the event was
        filtered out or the tree stopped before it could be queued.
        """
        if not self.accepts(change.full_path):
            return False
        while not self._stop.is_set():
            try:
                self._queue.put(change, timeout=_POLL_SECONDS)
                return True
            except queue.Full:
                logger.debug("Queue for %s full, waiting", self.pattern)
        logger.warning("Dropping %s event for '%s': watcher stopping", change.kind.value, change.full_path)
        return False

    def _run(self) -> None:
        while True:
            try:
                change = self._queue.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                if self._stop.is_set():
                    break
                continue
            try:
                self.process(change)
            finally:
                self._queue.task_done()

    # ---- handling ----

    def process(self, change: ChangeEvent) -> bool:
        """
        Mirror one change into the target tree.

        Failures are retried ``config.retry_count`` times, then logged and
        dropped; they never propagate. Returns True if the change was
        mirrored, False if it was skipped or failed.
        """
        if self._filter.is_extension_blacklisted(change.full_path):
            logger.debug("Skipping %s (blacklisted extension)", change.full_path)
            return False

        attempts = 1 + self.config.retry_count
        for attempt in range(1, attempts + 1):
            try:
                self._apply(change)
                return True
            except OSError as exc:
                if attempt < attempts:
                    logger.info(
                        "Retrying '%s' in %.1fs (attempt %d/%d failed: %s)",
                        change.full_path, self.config.retry_delay, attempt, attempts, exc,
                    )
                    self._stop.wait(self.config.retry_delay)
                    continue
                logger.error(
                    "Could not %s file '%s'. %s",
                    _FAILURE_ACTION[change.kind], change.full_path, exc,
                )
            except Exception:
                logger.exception(
                    "Could not %s file '%s'.", _FAILURE_ACTION[change.kind], change.full_path
                )
                break
        return False

    def _apply(self, change: ChangeEvent) -> None:
        target = to_target(self.config.source_root, self.config.target_root, change.full_path)
        if change.kind is ChangeKind.DELETED:
            self._mirror.delete(target)
            return
        logger.info(
            "File changed (%s), '%s' watcher '%s'",
            change.kind.value, change.full_path, change.watch_root,
        )
        logger.info("Copying file to '%s'", target)
        self._mirror.copy(change.full_path, target)
