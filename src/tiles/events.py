"""
Events published by the engine and treasury.

Each event is a frozen dataclass. The EventBus keeps an append-only
history and forwards every event to its subscribers in publish order.
"""
import threading
from dataclasses import dataclass
from typing import Callable, List, Type, TypeVar


# ============================================================================
# Event Types
# ============================================================================

@dataclass(frozen=True)
class Event:
    """Base class for engine events."""


@dataclass(frozen=True)
class RoundCreated(Event):
    round_id: int
    owner: str
    rows: int
    cols: int
    bombs: int
    stake: int


@dataclass(frozen=True)
class SeedRequested(Event):
    round_id: int
    correlation_id: int
    fee: int
    paid_by_treasury: bool


@dataclass(frozen=True)
class SeedFulfilled(Event):
    round_id: int
    correlation_id: int
    seed: bytes


@dataclass(frozen=True)
class TileRevealed(Event):
    round_id: int
    row: int
    col: int
    is_bomb: bool
    safe_reveals: int


@dataclass(frozen=True)
class BombHit(Event):
    round_id: int
    row: int
    col: int
    stake_lost: int


@dataclass(frozen=True)
class CashedOut(Event):
    round_id: int
    owner: str
    payout: int
    fee: int
    multiplier: int


@dataclass(frozen=True)
class Funded(Event):
    funder: str
    amount: int
    balance: int


@dataclass(frozen=True)
class Withdrawn(Event):
    to: str
    amount: int
    balance: int


# ============================================================================
# Event Bus
# ============================================================================

Subscriber = Callable[[Event], None]
E = TypeVar("E", bound=Event)


class EventBus:
    """In-process publisher with an append-only event history."""

    def __init__(self) -> None:
        self._subscribers: List[Subscriber] = []
        self._history: List[Event] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        self._subscribers.remove(callback)

    def publish(self, event: Event) -> None:
        """Record an event and hand it to every subscriber."""
        with self._lock:
            self._history.append(event)
        for callback in list(self._subscribers):
            callback(event)

    @property
    def history(self) -> List[Event]:
        with self._lock:
            return list(self._history)

    def of_type(self, event_type: Type[E]) -> List[E]:
        """Get recorded events of one type, oldest first."""
        return [e for e in self.history if isinstance(e, event_type)]
