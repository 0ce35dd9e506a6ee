"""
Randomness service boundary.

The engine asks a RandomnessService for a fee quote, pays it to open a
request, and later receives the seed through a callback. The local
service below keeps requests in memory and delivers seeds on demand,
which is enough for simulation, the CLI and tests.
"""
import itertools
import logging
import secrets
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol

from .errors import InsufficientFee, UnknownCorrelation
from .sampler import Seed, seed_to_bytes

logger = logging.getLogger("tiles.randomness")

SeedCallback = Callable[[int, bytes], None]


# ============================================================================
# Service Interface
# ============================================================================

class RandomnessService(Protocol):
    """External provider of random seeds."""

    def quote_price(self, callback_budget: int) -> int:
        """Fee charged for a request with the given callback budget."""
        ...

    def request_randomness(self, callback_budget: int, payment: int) -> int:
        """Open a request and return its correlation id."""
        ...


# ============================================================================
# Local Service
# ============================================================================

@dataclass
class PendingRequest:
    correlation_id: int
    callback_budget: int
    payment: int


class LocalRandomnessService:
    """
    In-memory randomness service.

    Fees are linear in the callback budget. Seeds are delivered by calling
    fulfill() (or fulfill_all()), which invokes the registered callback,
    normally RoundEngine.on_seed_delivered.
    """

    def __init__(
        self,
        base_fee: int = 10 ** 12,
        fee_per_unit: int = 10 ** 7,
        callback: Optional[SeedCallback] = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            base_fee: Flat part of every quote.
            fee_per_unit: Price per unit of callback budget.
            callback: Receiver of (correlation_id, seed) deliveries.
        """
        self.base_fee = base_fee
        self.fee_per_unit = fee_per_unit
        self.callback = callback
        self.collected_fees = 0
        self._pending: Dict[int, PendingRequest] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def quote_price(self, callback_budget: int) -> int:
        return self.base_fee + callback_budget * self.fee_per_unit

    def request_randomness(self, callback_budget: int, payment: int) -> int:
        """
        Open a request.

        Raises:
            InsufficientFee: payment is below the quote.
        """
        quote = self.quote_price(callback_budget)
        if payment < quote:
            raise InsufficientFee(f"Service quoted {quote}, received {payment}")
        with self._lock:
            correlation_id = next(self._ids)
            self._pending[correlation_id] = PendingRequest(
                correlation_id, callback_budget, payment
            )
            self.collected_fees += payment
        logger.debug(f"Opened randomness request {correlation_id}")
        return correlation_id

    @property
    def pending(self) -> List[int]:
        """Correlation ids still waiting for a seed."""
        with self._lock:
            return sorted(self._pending)

    def fulfill(self, correlation_id: int, seed: Optional[Seed] = None) -> bytes:
        """
        Deliver a seed for an open request.

        Args:
            correlation_id: Request to fulfill.
            seed: Seed to deliver; a fresh random one when omitted.

        Returns:
            The delivered seed.

        Raises:
            UnknownCorrelation: No open request has that id.
        """
        with self._lock:
            request = self._pending.pop(correlation_id, None)
        if request is None:
            raise UnknownCorrelation(f"No open request {correlation_id}")
        seed_bytes = secrets.token_bytes(32) if seed is None else seed_to_bytes(seed)
        logger.info(f"Fulfilling randomness request {correlation_id}")
        if self.callback is not None:
            self.callback(correlation_id, seed_bytes)
        return seed_bytes

    def fulfill_all(self) -> int:
        """Deliver fresh seeds for every open request. Returns how many."""
        ids = self.pending
        for correlation_id in ids:
            self.fulfill(correlation_id)
        return len(ids)
