"""
redeemables/core/emitter.py

Event delivery.

EventEmitter contract — emit() MUST:
  1. Never deliver inside an open journal block. Delivery is deferred to
     the outermost commit; a rolled-back call delivers nothing.
  2. Deliver synchronously, in emission order, to every subscriber.
  3. Propagate a subscriber exception to the caller. A notification that
     cannot be delivered is a hard failure, not a warning: inside a
     journal block it undoes every mutation the block made.

JsonlEventSink is a subscriber that appends every event to a JSON-lines
file. Each line carries `sequence` and `prev_hash`:

    prev_hash = SHA-256(JCS(previous record))   — GENESIS_HASH for line 0

so a truncated or edited log is detectable with verify_chain().
"""

import json
import logging
import threading
import warnings
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from redeemables.core.canonical import canonical_hash
from redeemables.core.events import Event
from redeemables.core.journal import Journal


logger = logging.getLogger(__name__)

GENESIS_HASH = "0" * 64

Listener = Callable[[Event], None]


class EventEmitter:
    """Synchronous publish/subscribe, gated on journal commit."""

    def __init__(self, journal: Optional[Journal] = None) -> None:
        self._journal   = journal
        self._listeners: List[Listener] = []
        self._lock      = threading.Lock()

    def subscribe(self, listener: Listener) -> Listener:
        with self._lock:
            self._listeners.append(listener)
        return listener

    def unsubscribe(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.remove(listener)

    def emit(self, event: Event) -> None:
        if self._journal is not None:
            self._journal.on_commit(lambda: self._deliver(event))
        else:
            self._deliver(event)

    def _deliver(self, event: Event) -> None:
        with self._lock:
            listeners = list(self._listeners)
        logger.debug("Delivering %s to %d listener(s)", event.event_type, len(listeners))
        for listener in listeners:
            listener(event)


class EventRecorder:
    """Listener that keeps every delivered event in memory."""

    def __init__(self) -> None:
        self.events: List[Event] = []

    def __call__(self, event: Event) -> None:
        self.events.append(event)

    def of_type(self, event_type: type) -> List[Event]:
        return [e for e in self.events if isinstance(e, event_type)]

    def clear(self) -> None:
        self.events.clear()


class JsonlEventSink:
    """
    Append-only, hash-chained event log.

    Thread-safe via internal lock (single-process only).
    State survives process restart by reading the last line on __init__.
    """

    def __init__(self, path: Path) -> None:
        self._path      = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock      = threading.Lock()
        self._sequence  = 0
        self._last_hash = GENESIS_HASH
        self._restore_state()

    def __call__(self, event: Event) -> None:
        with self._lock:
            record = {
                "sequence":  self._sequence,
                "prev_hash": self._last_hash,
                "event":     event.to_dict(),
            }
            line_hash = canonical_hash(record)
            try:
                with open(self._path, "a", encoding="utf-8") as f:
                    f.write(json.dumps(record) + "\n")
            except OSError as exc:
                raise RuntimeError(
                    f"JsonlEventSink: event log write failed — {exc}"
                ) from exc
            # Advance state only after confirmed write
            self._sequence  += 1
            self._last_hash  = line_hash

    def read(self) -> List[Dict[str, Any]]:
        if not self._path.exists():
            return []
        records = []
        with open(self._path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    records.append(json.loads(line))
        return records

    def verify_chain(self) -> bool:
        """True if sequences are contiguous from 0 and every prev_hash links."""
        expected_prev = GENESIS_HASH
        for i, record in enumerate(self.read()):
            if record.get("sequence") != i:
                return False
            if record.get("prev_hash") != expected_prev:
                return False
            expected_prev = canonical_hash(record)
        return True

    def _restore_state(self) -> None:
        if not self._path.exists():
            return
        try:
            records = self.read()
        except (OSError, json.JSONDecodeError) as exc:
            warnings.warn(
                f"JsonlEventSink: could not restore state from {self._path}: {exc}. "
                "Call verify_chain() before appending.",
                RuntimeWarning,
                stacklevel=3,
            )
            return
        if records:
            last = records[-1]
            self._sequence  = last["sequence"] + 1
            self._last_hash = canonical_hash(last)
