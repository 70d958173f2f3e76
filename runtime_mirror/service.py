"""
Headless supervisor for Runtime Mirror.

Owns one :class:`~runtime_mirror.watcher.WatchTree` per configured
pattern and keeps them running until asked to stop, either through
:meth:`Supervisor.stop`, a caller-supplied stop event, or SIGINT/SIGTERM
when run in the foreground.
"""

import logging
import os
import signal
import threading

from runtime_mirror.config import MirrorConfig, PreconditionError
from runtime_mirror.copier import FileMirror
from runtime_mirror.watcher import WatchTree

logger = logging.getLogger(__name__)

_WAIT_SECONDS = 0.5


class Supervisor:
    """Builds, runs and tears down the watch trees of one mirroring session."""

    def __init__(self, config: MirrorConfig, mirror: FileMirror | None = None):
        self.config = config
        self.mirror = mirror or FileMirror()
        self.trees: list[WatchTree] = []
        self._stop_event = threading.Event()

    def check_preconditions(self) -> None:
        """Raise PreconditionError if the source or target directory is missing."""
        if not os.path.isdir(self.config.source_root):
            raise PreconditionError("source", self.config.source_root)
        if not os.path.isdir(self.config.target_root):
            raise PreconditionError("target", self.config.target_root)

    def start(self) -> None:
        """Start one watch tree per pattern; nothing is installed if a check fails."""
        self.check_preconditions()
        self._stop_event.clear()
        try:
            for pattern in self.config.patterns:
                tree = WatchTree(self.config, pattern, self.mirror)
                tree.start()
                self.trees.append(tree)
        except Exception:
            logger.exception("Failed to start watchers.")
            self._stop_trees()
            raise
        logger.info(
            "Watching '%s' for %s (%s)",
            self.config.source_root,
            ", ".join(self.config.patterns),
            self.config.watch_mode,
        )

    def run(self, stop_event: threading.Event | None = None) -> None:
        """
        Start watching and block until stopped.

        Returns once *stop_event* (if given) is set or :meth:`stop` is called,
        after every watch tree has been torn down.
        """
        self.start()
        events = [e for e in (stop_event, self._stop_event) if e is not None]
        try:
            while not any(e.is_set() for e in events):
                self._stop_event.wait(_WAIT_SECONDS)
        finally:
            self.stop()

    def request_stop(self) -> None:
        """Ask a running :meth:`run` loop to return. Safe from signal handlers."""
        self._stop_event.set()

    def stop(self) -> None:
        """Stop all watch trees and log the session totals."""
        self._stop_event.set()
        if not self.trees:
            return
        self._stop_trees()
        logger.info("Mirror stopped: %s", self.mirror.stats.summary())

    @property
    def is_running(self) -> bool:
        return any(tree.is_running for tree in self.trees)

    def _stop_trees(self) -> None:
        while self.trees:
            tree = self.trees.pop()
            try:
                tree.stop()
            except Exception:
                logger.exception("Error stopping watcher for %s", tree.pattern)


def run_foreground(supervisor: Supervisor) -> None:
    """Run *supervisor* on the main thread until SIGINT/SIGTERM."""

    def _handler(sig, frame):
        supervisor.request_stop()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)

    supervisor.run()
