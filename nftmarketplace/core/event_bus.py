"""Event bus — hashes, records and routes marketplace notifications.

All notifications leave the ledger as validated Pydantic event models.
No freeform messages go through the bus.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable

from nftmarketplace.core.hasher import canonical_json_bytes, compute_payload_hash
from nftmarketplace.models.events import (
    EVENT_TYPE_MAP,
    MarketEvent,
    MarketEventKind,
)

logger = logging.getLogger(__name__)

EventHandler = Callable[[MarketEvent], object]


class EventValidationError(ValueError):
    """Raised when a raw event fails validation."""


class EventDeliveryError(RuntimeError):
    """Raised after publishing when one or more handlers failed.

    Every handler still ran for every event; ``failures`` lists the
    ``(event, exception)`` pairs in the order they occurred.
    """

    def __init__(self, failures: list[tuple[MarketEvent, Exception]]) -> None:
        self.failures = failures
        detail = "; ".join(
            f"{event.event_kind.value}: {exc}" for event, exc in failures
        )
        super().__init__(f"{len(failures)} event handler call(s) failed: {detail}")


class EventBus:
    """Publishes marketplace events to registered handlers.

    Every published event is:
    1. Stamped with its payload hash
    2. Appended to the in-process history
    3. Routed to per-kind handlers, then to catch-all handlers

    A failing handler does not stop the others; failures are raised
    together as ``EventDeliveryError`` once every handler has run.
    """

    def __init__(self) -> None:
        self._handlers: dict[MarketEventKind, list[EventHandler]] = {
            kind: [] for kind in MarketEventKind
        }
        self._global_handlers: list[EventHandler] = []
        self._history: list[MarketEvent] = []

    def register_handler(self, kind: MarketEventKind, handler: EventHandler) -> None:
        """Register a handler for a specific event kind."""
        self._handlers[kind].append(handler)

    def register_global_handler(self, handler: EventHandler) -> None:
        """Register a handler that receives every event kind."""
        self._global_handlers.append(handler)

    @property
    def history(self) -> list[MarketEvent]:
        """Events published so far, oldest first."""
        return list(self._history)

    def history_of(self, kind: MarketEventKind) -> list[MarketEvent]:
        return [event for event in self._history if event.event_kind == kind]

    # ------------------------------------------------------------------
    # Publish (hash + record + route)
    # ------------------------------------------------------------------

    def prepare(self, event: MarketEvent) -> MarketEvent:
        """Return the event with its payload_hash set."""
        payload_fields = event.model_dump(
            mode="json",
            exclude={"payload_hash", "event_id", "timestamp_utc"},
        )
        return event.model_copy(
            update={"payload_hash": compute_payload_hash(payload_fields)}
        )

    def publish(self, event: MarketEvent) -> MarketEvent:
        """Hash, record, and dispatch an event.

        Returns the prepared event.  Raises ``EventDeliveryError`` if any
        handler failed; the event is recorded in history regardless.
        """
        prepared = self.prepare(event)
        self._history.append(prepared)
        logger.debug(
            "Publishing %s for %s#%d.",
            prepared.event_kind.value, prepared.registry, prepared.token_id,
        )

        failures: list[tuple[MarketEvent, Exception]] = []
        handlers = [*self._handlers.get(prepared.event_kind, []), *self._global_handlers]
        for handler in handlers:
            try:
                handler(prepared)
            except Exception as exc:
                logger.error(
                    "Handler %r failed on %s: %s", handler, prepared.event_kind.value, exc
                )
                failures.append((prepared, exc))

        if failures:
            raise EventDeliveryError(failures) from failures[0][1]
        return prepared

    # ------------------------------------------------------------------
    # Receive (deserialize + validate)
    # ------------------------------------------------------------------

    def receive(self, raw_json: bytes | str) -> MarketEvent:
        """Deserialize and validate a raw JSON event.

        Determines the correct Pydantic model from event_kind and
        validates all fields.
        """
        try:
            if isinstance(raw_json, bytes):
                raw_json = raw_json.decode("utf-8")
            data = json.loads(raw_json)
        except UnicodeDecodeError as exc:
            raise EventValidationError(f"Invalid UTF-8: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise EventValidationError(f"Invalid JSON: {exc}") from exc

        return self.from_dict(data)

    @staticmethod
    def from_dict(data: object) -> MarketEvent:
        """Validate an already-decoded event mapping."""
        if not isinstance(data, dict):
            raise EventValidationError(
                f"Event must be a JSON object, got {type(data).__name__}"
            )

        kind_str = data.get("event_kind")
        if not kind_str:
            raise EventValidationError("Missing event_kind field")

        try:
            kind = MarketEventKind(kind_str)
        except ValueError as exc:
            raise EventValidationError(f"Unknown event_kind: {kind_str!r}") from exc

        model_cls = EVENT_TYPE_MAP[kind]
        try:
            return model_cls.model_validate(data)
        except Exception as exc:
            raise EventValidationError(f"Event validation failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    @staticmethod
    def serialize(event: MarketEvent) -> bytes:
        """Serialize an event to canonical JSON bytes."""
        return canonical_json_bytes(event.model_dump(mode="json"))
