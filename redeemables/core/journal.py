"""
redeemables/core/journal.py

All-or-nothing execution for the effectful redemption path.

Every state holder that can be touched during a redemption (campaign
store, digest guard, token contracts) records an undo action for each
mutation it makes while a block is open:

    with journal.atomic():
        store.increment(...)      # records its own undo
        guard.consume(...)        # records its own undo
        token.mint_redemption()   # may raise → everything above is undone

Rules:
    - Blocks nest. An inner block that completes hands its undo actions
      and deferred callbacks to the enclosing block.
    - On exception the failing block replays its undo actions in reverse
      order, then re-raises. Nothing is partially applied.
    - on_commit() callbacks (notifications) run only when the OUTERMOST
      block completes. Outside any block they run immediately.
    - A commit callback that raises undoes the whole block; callbacks
      queued after it are not run.
    - Frames are per-thread.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, List


logger = logging.getLogger(__name__)


class _Frame:
    __slots__ = ("undo", "after_commit")

    def __init__(self) -> None:
        self.undo:         List[Callable[[], None]] = []
        self.after_commit: List[Callable[[], None]] = []

    def absorb(self, inner: "_Frame") -> None:
        self.undo.extend(inner.undo)
        self.after_commit.extend(inner.after_commit)

    def rollback(self) -> None:
        for undo in reversed(self.undo):
            try:
                undo()
            except Exception as exc:
                logger.error("Journal undo step failed: %s", exc, exc_info=True)


class Journal:
    """Undo log with nested atomic blocks. See module docstring."""

    def __init__(self) -> None:
        self._local = threading.local()

    @property
    def _frames(self) -> List[_Frame]:
        frames = getattr(self._local, "frames", None)
        if frames is None:
            frames = []
            self._local.frames = frames
        return frames

    @property
    def active(self) -> bool:
        return bool(self._frames)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        frames = self._frames
        frame  = _Frame()
        frames.append(frame)
        try:
            yield
        except BaseException:
            frames.pop()
            logger.debug("Journal rollback: %d undo step(s)", len(frame.undo))
            frame.rollback()
            raise
        frames.pop()
        if frames:
            frames[-1].absorb(frame)
            return
        try:
            for callback in frame.after_commit:
                callback()
        except BaseException:
            logger.debug("Journal rollback after failed commit callback")
            frame.rollback()
            raise

    def record_undo(self, undo: Callable[[], None]) -> None:
        """Register how to reverse a mutation just made. No-op outside a block."""
        frames = self._frames
        if frames:
            frames[-1].undo.append(undo)

    def on_commit(self, callback: Callable[[], None]) -> None:
        """Defer callback until the outermost block commits."""
        frames = self._frames
        if frames:
            frames[-1].after_commit.append(callback)
        else:
            callback()
