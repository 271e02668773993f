"""
skillcred.events — Evidence and score event notifications.

Evidence mutations (graded submissions, endorsement writes, skill edits)
are published here; the recompute trigger subscribes to them. Score
results are published as score.updated / score.failed.

Usage:
    bus = EventBus()
    bus.subscribe("endorsement.*", my_handler)
    bus.emit("endorsement.created", {"person_id": "p1", "endorsement_id": "e1"})

Webhook integration:
    bus.add_webhook("https://example.com/hook", ["score.*"])
"""

from __future__ import annotations

import fnmatch
import hashlib
import json
import logging
import threading
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Callable, Optional

import httpx

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    SUBMISSION_GRADED = "submission.graded"
    ENDORSEMENT_CREATED = "endorsement.created"
    ENDORSEMENT_UPDATED = "endorsement.updated"
    ENDORSEMENT_REVOKED = "endorsement.revoked"
    SKILL_ADDED = "skill.added"
    SKILL_UPDATED = "skill.updated"
    SKILL_REMOVED = "skill.removed"
    SCORE_UPDATED = "score.updated"
    SCORE_FAILED = "score.failed"


# Events after which the affected person's scores are stale.
EVIDENCE_EVENTS = ["submission.graded", "endorsement.*", "skill.*"]


@dataclass
class Event:
    event_type: str
    data: dict = field(default_factory=dict)
    timestamp: float = 0.0
    source: str = ""
    event_id: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = time.time()
        if not self.event_id:
            payload = f"{self.event_type}:{self.timestamp}:{json.dumps(self.data, sort_keys=True, default=str)}"
            self.event_id = hashlib.sha256(payload.encode()).hexdigest()[:16]

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "Event":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


@dataclass
class Subscription:
    subscriber_id: str
    patterns: list[str]  # glob patterns like "endorsement.*"
    callback: Optional[Callable[[Event], None]] = None
    webhook_url: Optional[str] = None
    created_at: float = field(default_factory=time.time)
    active: bool = True

    def matches(self, event_type: str) -> bool:
        return any(fnmatch.fnmatch(event_type, p) for p in self.patterns)


class EventBus:
    """
    In-process event bus.

    Callbacks run synchronously in the emitting thread, after the bus
    lock is released, so a callback may emit further events.
    """

    def __init__(self, max_history: int = 1000, webhook_timeout: float = 5.0):
        self._subscriptions: dict[str, Subscription] = {}
        self._history: list[Event] = []
        self._max_history = max_history
        self._lock = threading.Lock()
        self._webhook_timeout = webhook_timeout
        self._counter = 0

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}:{self._counter}"

    def subscribe(
        self,
        patterns: str | list[str],
        callback: Optional[Callable[[Event], None]] = None,
        subscriber_id: Optional[str] = None,
    ) -> str:
        """Subscribe a callback to event types matching the glob pattern(s). Returns the subscription ID."""
        if isinstance(patterns, str):
            patterns = [patterns]
        with self._lock:
            subscriber_id = subscriber_id or self._next_id("sub")
            self._subscriptions[subscriber_id] = Subscription(
                subscriber_id=subscriber_id,
                patterns=patterns,
                callback=callback,
            )
        return subscriber_id

    def add_webhook(
        self,
        url: str,
        patterns: str | list[str],
        subscriber_id: Optional[str] = None,
    ) -> str:
        """HTTP POST matching events to url (best effort)."""
        if isinstance(patterns, str):
            patterns = [patterns]
        if not subscriber_id:
            subscriber_id = f"wh:{hashlib.sha256(url.encode()).hexdigest()[:8]}"
        with self._lock:
            self._subscriptions[subscriber_id] = Subscription(
                subscriber_id=subscriber_id,
                patterns=patterns,
                webhook_url=url,
            )
        return subscriber_id

    def unsubscribe(self, subscriber_id: str) -> bool:
        with self._lock:
            return self._subscriptions.pop(subscriber_id, None) is not None

    def emit(self, event_type: str, data: Optional[dict] = None, source: str = "") -> Event:
        """Record an event and dispatch it to all matching subscribers."""
        event = Event(event_type=str(getattr(event_type, "value", event_type)), data=data or {}, source=source)

        with self._lock:
            self._history.append(event)
            if len(self._history) > self._max_history:
                self._history = self._history[-self._max_history:]
            subs = [s for s in self._subscriptions.values() if s.active and s.matches(event.event_type)]

        for sub in subs:
            self._dispatch(sub, event)
        return event

    def _dispatch(self, sub: Subscription, event: Event):
        if sub.callback:
            try:
                sub.callback(event)
            except Exception:
                logger.exception("Subscriber %s failed on %s", sub.subscriber_id, event.event_type)

        if sub.webhook_url:
            self._send_webhook(sub.webhook_url, event)

    def _send_webhook(self, url: str, event: Event):
        try:
            response = httpx.post(url, json=event.to_dict(), timeout=self._webhook_timeout)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Webhook delivery to %s failed for %s: %s", url, event.event_id, e)

    def history(
        self,
        event_type: Optional[str] = None,
        since: Optional[float] = None,
        limit: int = 50,
    ) -> list[Event]:
        """Query event history with optional filters."""
        with self._lock:
            events = list(self._history)

        if event_type:
            events = [e for e in events if fnmatch.fnmatch(e.event_type, event_type)]
        if since:
            events = [e for e in events if e.timestamp >= since]

        return events[-limit:]

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)
