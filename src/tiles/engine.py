"""
Round engine for the tiles game.

Implements the round lifecycle:

    CREATED -> SEED_REQUESTED -> ACTIVE -> SETTLED

Each round is guarded by its own re-entrant lock plus a busy flag, so
transitions on one round are linearizable and a call that re-enters the
engine from inside an external transfer is rejected. The treasury is the
only state shared between rounds.

Every settling transition mutates the round first, then debits the
treasury, and performs the external transfer last. If the transfer
fails, round and treasury are restored and TransferError is raised.

Events are published while the round is still held, so subscribers see
one round's events in the order its transitions happened.
"""
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, Iterator, List, Optional, Set

from .board import cell_index, place_bombs, verify_board
from .cell_mask import CellMask
from .config import EngineConfig, RoundConfig
from .errors import (
    AlreadyRevealed,
    InsufficientFee,
    InvalidStake,
    NotActive,
    NotCreated,
    NotOwner,
    NotSettled,
    OutOfBounds,
    ReentrantCall,
    TilesError,
    TransferError,
    UnknownCorrelation,
    UnknownRound,
)
from .events import (
    BombHit,
    CashedOut,
    EventBus,
    RoundCreated,
    SeedFulfilled,
    SeedRequested,
    TileRevealed,
)
from .fixed_point import format_wad
from .payout import apply_fee, max_payout, multiplier, payout
from .randomness import RandomnessService
from .round import Round, RoundOutcome, RoundState, RoundView
from .sampler import Seed, seed_to_bytes
from .treasury import Treasury
from .wallet import PayoutWallet

logger = logging.getLogger("tiles.engine")


# ============================================================================
# Results
# ============================================================================

class FeeFunding(Enum):
    """Who pays the randomness fee, and how exactly."""

    EXACT = auto()
    AT_LEAST = auto()
    TREASURY = auto()


@dataclass(frozen=True)
class Settlement:
    """Funds moved when a round settled with a payout."""

    round_id: int
    outcome: RoundOutcome
    multiplier: int
    gross: int
    fee: int
    net: int


@dataclass(frozen=True)
class RevealResult:
    """
    Result of revealing one tile.

    Attributes:
        is_bomb: Whether the tile held a bomb.
        safe_reveals: Safe tiles revealed after this call.
        multiplier: Multiplier after this call (0 on a bomb).
        state: Round state after this call.
        settlement: Payout details if the reveal settled the round with
            a payout (cap reached or board cleared).
    """

    round_id: int
    row: int
    col: int
    is_bomb: bool
    safe_reveals: int
    multiplier: int
    state: RoundState
    settlement: Optional[Settlement] = None


# ============================================================================
# Round Engine
# ============================================================================

class RoundEngine:
    """
    Owns every round and drives its lifecycle.

    Rounds are kept in an append-only table keyed by increasing ids
    starting at 1; settled rounds stay in the table for audit.
    """

    def __init__(
        self,
        randomness: RandomnessService,
        wallet: PayoutWallet,
        config: Optional[EngineConfig] = None,
        treasury: Optional[Treasury] = None,
        events: Optional[EventBus] = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            randomness: Service that quotes and opens seed requests.
            wallet: Transfer boundary for payouts.
            config: Engine settings (default: EngineConfig()).
            treasury: Pool to settle against; created empty if omitted.
            events: Bus receiving engine events; shared with the treasury
                when the treasury is created here.
        """
        self.config = config or EngineConfig()
        self.events = events or EventBus()
        self.randomness = randomness
        self.wallet = wallet
        self.treasury = treasury or Treasury(
            self.config.operator, wallet, self.events
        )

        self._rounds: Dict[int, Round] = {}
        self._correlations: Dict[int, int] = {}
        # Seeds delivered before request_seed learned their correlation id
        self._early_seeds: Dict[int, bytes] = {}
        self._resolved: Set[int] = set()
        self._in_flight = 0
        self._next_id = 1
        self._lock = threading.Lock()

    # ========================================================================
    # Round Table (Low-level)
    # ========================================================================

    def _get(self, round_id: int) -> Round:
        with self._lock:
            round_ = self._rounds.get(round_id)
        if round_ is None:
            raise UnknownRound(f"No round {round_id}")
        return round_

    @contextmanager
    def _guard(self, round_id: int) -> Iterator[Round]:
        """Hold a round exclusively for one mutating transition."""
        round_ = self._get(round_id)
        with round_.lock:
            if round_.busy:
                raise ReentrantCall(f"Round {round_id} is mid-transition")
            round_.busy = True
            try:
                yield round_
            finally:
                round_.busy = False

    @staticmethod
    def _require_state(round_: Round, state: RoundState, error) -> None:
        if round_.state != state:
            raise error(
                f"Round {round_.round_id} is {round_.state.name}, "
                f"expected {state.name}"
            )

    @staticmethod
    def _require_owner(round_: Round, caller: str) -> None:
        if caller != round_.owner:
            raise NotOwner(f"{caller} does not own round {round_.round_id}")

    @staticmethod
    def _check_bounds(round_: Round, row: int, col: int) -> int:
        if not (0 <= row < round_.rows and 0 <= col < round_.cols):
            raise OutOfBounds(
                f"({row}, {col}) is outside the {round_.rows}x{round_.cols} board"
            )
        return cell_index(round_.cols, row, col)

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def create_round(
        self, owner: str, rows: int, cols: int, bombs: int, stake: int
    ) -> int:
        """
        Open a new round and take its stake into the pool.

        Args:
            owner: Staking participant.
            rows: Board rows (1..10).
            cols: Board columns (1..10).
            bombs: Bomb count, leaving at least one safe cell.
            stake: Amount staked (wad), at most config.max_stake.

        Returns:
            The new round id.

        Raises:
            InvalidDimensions: rows or cols out of range.
            InvalidBombCount: bombs out of range.
            InvalidStake: stake is not positive or exceeds max_stake.
            InsufficientLiquidity: Pool cannot cover stake at the cap.
        """
        config = RoundConfig(rows, cols, bombs)
        if isinstance(stake, bool) or not isinstance(stake, int):
            raise InvalidStake(f"Stake must be an int, got {type(stake).__name__}")
        if not 0 < stake <= self.config.max_stake:
            raise InvalidStake(
                f"Stake must be within 1..{self.config.max_stake}, got {stake}"
            )
        required = max_payout(stake)

        with self._lock:
            round_id = self._next_id
            round_ = Round(round_id, owner, config, stake)
            self.treasury.accept_stake(stake, required)
            self._next_id += 1
            # round_ is not reachable yet, so this never blocks
            round_.lock.acquire()
            self._rounds[round_id] = round_

        try:
            logger.info(
                f"Round {round_id} created by {owner}: {rows}x{cols}, "
                f"{bombs} bombs, stake {format_wad(stake)}"
            )
            self.events.publish(
                RoundCreated(round_id, owner, rows, cols, bombs, stake)
            )
        finally:
            round_.lock.release()
        return round_id

    def request_seed(
        self,
        round_id: int,
        callback_budget: int,
        caller: str,
        payment: Optional[int] = None,
        funding: FeeFunding = FeeFunding.EXACT,
    ) -> int:
        """
        Ask the randomness service for the round's seed.

        Args:
            round_id: Round in CREATED.
            callback_budget: Budget passed through to the service quote.
            caller: Round owner or the operator.
            payment: Amount the caller pays (ignored for TREASURY).
            funding: EXACT, AT_LEAST or TREASURY.

        Returns:
            Correlation id of the request.

        Raises:
            NotCreated: Round is past CREATED.
            NotOwner: caller is neither owner nor operator.
            InsufficientFee: Payment does not satisfy the quote, or the
                pool cannot pay it.
            TransferError: The service rejected the request.
        """
        with self._guard(round_id) as round_:
            self._require_state(round_, RoundState.CREATED, NotCreated)
            if caller not in (round_.owner, self.config.operator):
                raise NotOwner(f"{caller} may not request a seed for round {round_id}")

            quote = self.randomness.quote_price(callback_budget)
            from_treasury = funding == FeeFunding.TREASURY
            if from_treasury:
                payment = quote
                self.treasury.debit(quote, InsufficientFee)
            elif payment is None or payment < quote:
                raise InsufficientFee(f"Quote is {quote}, caller paid {payment}")
            elif funding == FeeFunding.EXACT and payment != quote:
                raise InsufficientFee(f"Quote is {quote}, exact payment required, got {payment}")

            snapshot = round_.snapshot()
            round_.state = RoundState.SEED_REQUESTED
            with self._lock:
                self._in_flight += 1
            try:
                correlation_id = self.randomness.request_randomness(
                    callback_budget, payment
                )
            except Exception as exc:
                with self._lock:
                    self._end_request()
                round_.restore(snapshot)
                if from_treasury:
                    self.treasury.credit(quote)
                logger.warning(f"Seed request for round {round_id} rolled back: {exc}")
                if isinstance(exc, TilesError):
                    raise
                raise TransferError(f"Seed request failed: {exc}") from exc

            round_.pending_request_id = correlation_id
            with self._lock:
                early_seed = self._early_seeds.pop(correlation_id, None)
                if early_seed is None:
                    self._correlations[correlation_id] = round_id
                else:
                    self._resolved.add(correlation_id)
                self._end_request()

            logger.info(
                f"Round {round_id} requested seed {correlation_id} (fee {quote})"
            )
            self.events.publish(
                SeedRequested(round_id, correlation_id, payment, from_treasury)
            )
            if early_seed is not None:
                self._activate(round_, correlation_id, early_seed)
        return correlation_id

    def on_seed_delivered(self, correlation_id: int, seed: Seed) -> None:
        """
        Receive a seed from the randomness service and activate the round.

        A correlation id is consumed on first delivery; later deliveries
        for the same id fail without touching the board. A delivery that
        arrives while request_seed is still waiting on the service (before
        the id is known to the engine) is held and applied as soon as
        request_seed registers the id.

        Raises:
            UnknownCorrelation: No round is waiting on correlation_id.
            InvalidSeed: seed is not a 256-bit value.
        """
        seed_bytes = seed_to_bytes(seed)
        with self._lock:
            round_id = self._correlations.get(correlation_id)
            if round_id is None:
                if (correlation_id in self._resolved
                        or correlation_id in self._early_seeds):
                    raise UnknownCorrelation(
                        f"Request {correlation_id} was already fulfilled"
                    )
                if not self._in_flight:
                    raise UnknownCorrelation(
                        f"No round waits on request {correlation_id}"
                    )
                self._early_seeds[correlation_id] = seed_bytes
        if round_id is None:
            logger.debug(f"Held early seed for request {correlation_id}")
            return

        with self._guard(round_id) as round_:
            with self._lock:
                if self._correlations.get(correlation_id) != round_id:
                    raise UnknownCorrelation(
                        f"Request {correlation_id} was already fulfilled"
                    )
                del self._correlations[correlation_id]
                self._resolved.add(correlation_id)
            self._activate(round_, correlation_id, seed_bytes)

    def _activate(self, round_: Round, correlation_id: int, seed_bytes: bytes) -> None:
        """Place bombs from a delivered seed. Caller holds the round guard."""
        round_.bomb_mask = place_bombs(
            seed_bytes, round_.config.cell_count, round_.bombs
        )
        round_.seed = seed_bytes
        round_.pending_request_id = None
        round_.state = RoundState.ACTIVE

        logger.info(f"Round {round_.round_id} active (request {correlation_id})")
        self.events.publish(
            SeedFulfilled(round_.round_id, correlation_id, seed_bytes)
        )

    def _end_request(self) -> None:
        """Mark one service call finished. Caller holds self._lock."""
        self._in_flight -= 1
        if not self._in_flight and self._early_seeds:
            logger.warning(
                f"Dropping seeds for unknown requests: {sorted(self._early_seeds)}"
            )
            self._early_seeds.clear()

    def reveal_tile(
        self, round_id: int, row: int, col: int, caller: str
    ) -> RevealResult:
        """
        Open one tile.

        A bomb settles the round as lost. A safe tile raises the
        multiplier; reaching the cap or clearing the board settles the
        round and pays out immediately.

        Raises:
            NotActive: Round is not ACTIVE.
            NotOwner: caller does not own the round.
            OutOfBounds: (row, col) is off the board.
            AlreadyRevealed: Tile is already open.
            TransferError: An automatic payout failed; nothing changed.
        """
        with self._guard(round_id) as round_:
            self._require_state(round_, RoundState.ACTIVE, NotActive)
            self._require_owner(round_, caller)
            index = self._check_bounds(round_, row, col)
            if index in round_.revealed_mask:
                raise AlreadyRevealed(f"({row}, {col}) is already revealed")

            snapshot = round_.snapshot()
            round_.revealed_mask.set(index)

            if index in round_.bomb_mask:
                lost = round_.stake
                round_.stake = 0
                round_.state = RoundState.SETTLED
                round_.outcome = RoundOutcome.LOST
                result = RevealResult(
                    round_id, row, col, True, round_.safe_reveal_count,
                    0, round_.state,
                )
            else:
                lost = 0
                round_.safe_reveal_count += 1
                current = multiplier(
                    round_.bombs, round_.config.cell_count, round_.safe_reveal_count
                )
                cap = max_payout(round_.stake)
                gross = min(payout(round_.stake, current), cap)

                settlement = None
                if gross >= cap:
                    settlement = self._settle(
                        round_, snapshot, gross, 0, RoundOutcome.CAPPED, current
                    )
                elif round_.safe_reveal_count == round_.config.max_safe:
                    settlement = self._settle(
                        round_, snapshot, gross, 0, RoundOutcome.CLEARED, current
                    )
                result = RevealResult(
                    round_id, row, col, False, round_.safe_reveal_count,
                    current, round_.state, settlement,
                )

            logger.debug(
                f"Round {round_id} revealed ({row}, {col}): "
                f"{'bomb' if result.is_bomb else 'safe'}"
            )
            self.events.publish(
                TileRevealed(round_id, row, col, result.is_bomb, result.safe_reveals)
            )
            if result.is_bomb:
                logger.info(f"Round {round_id} lost on ({row}, {col})")
                self.events.publish(BombHit(round_id, row, col, lost))
            elif result.settlement is not None:
                self._publish_payout(round_, result.settlement)
        return result

    def cash_out(self, round_id: int, caller: str) -> Settlement:
        """
        Settle an active round at the current multiplier.

        The configured house fee is deducted from the gross payout and
        stays in the pool.

        Raises:
            NotActive: Round is not ACTIVE.
            NotOwner: caller does not own the round.
            TransferError: The payout failed; nothing changed.
        """
        with self._guard(round_id) as round_:
            self._require_state(round_, RoundState.ACTIVE, NotActive)
            self._require_owner(round_, caller)

            snapshot = round_.snapshot()
            current = multiplier(
                round_.bombs, round_.config.cell_count, round_.safe_reveal_count
            )
            gross = min(payout(round_.stake, current), max_payout(round_.stake))
            settlement = self._settle(
                round_, snapshot, gross, self.config.fee_bps,
                RoundOutcome.CASHED_OUT, current,
            )
            self._publish_payout(round_, settlement)
        return settlement

    # ========================================================================
    # Settlement (Low-level)
    # ========================================================================

    def _settle(
        self,
        round_: Round,
        snapshot: Round,
        gross: int,
        fee_bps: int,
        outcome: RoundOutcome,
        current: int,
    ) -> Settlement:
        """
        Settle a round with a payout.

        Round state changes first, the pool is debited second, and the
        transfer to the owner goes last. Any failure restores the round
        to snapshot and the pool to its prior balance.
        """
        net, fee = apply_fee(gross, fee_bps)

        round_.stake = 0
        round_.state = RoundState.SETTLED
        round_.outcome = outcome
        round_.payout = net

        try:
            self.treasury.debit(net)
        except TilesError:
            round_.restore(snapshot)
            raise

        if net > 0:
            try:
                self.wallet.transfer(round_.owner, net)
            except Exception as exc:
                self.treasury.credit(net)
                round_.restore(snapshot)
                logger.warning(
                    f"Payout for round {round_.round_id} rolled back: {exc}"
                )
                if isinstance(exc, TransferError):
                    raise
                raise TransferError(
                    f"Payout to {round_.owner} failed: {exc}"
                ) from exc

        return Settlement(round_.round_id, outcome, current, gross, fee, net)

    def _publish_payout(self, round_: Round, settlement: Settlement) -> None:
        logger.info(
            f"Round {settlement.round_id} settled {settlement.outcome.name}: "
            f"paid {format_wad(settlement.net)} to {round_.owner}"
        )
        self.events.publish(
            CashedOut(
                settlement.round_id, round_.owner, settlement.net,
                settlement.fee, settlement.multiplier,
            )
        )

    # ========================================================================
    # Queries
    # ========================================================================

    @property
    def next_id(self) -> int:
        """Id the next created round will get."""
        with self._lock:
            return self._next_id

    def get_round(self, round_id: int) -> RoundView:
        round_ = self._get(round_id)
        with round_.lock:
            return RoundView(
                owner=round_.owner,
                rows=round_.rows,
                cols=round_.cols,
                bombs=round_.bombs,
                state=round_.state,
                safe_reveal_count=round_.safe_reveal_count,
                stake=round_.stake,
                revealed_mask=int(round_.revealed_mask),
                seed=round_.seed,
            )

    def get_outcome(self, round_id: int) -> RoundOutcome:
        round_ = self._get(round_id)
        with round_.lock:
            return round_.outcome

    def current_multiplier(self, round_id: int) -> int:
        """Multiplier at the round's current reveal count."""
        round_ = self._get(round_id)
        with round_.lock:
            return multiplier(
                round_.bombs, round_.config.cell_count, round_.safe_reveal_count
            )

    def quote_payout(self, round_id: int) -> int:
        """
        Net amount a cash-out would pay right now.

        Returns:
            Payout after the house fee, or 0 if the round is not ACTIVE.
        """
        round_ = self._get(round_id)
        with round_.lock:
            if round_.state != RoundState.ACTIVE:
                return 0
            current = multiplier(
                round_.bombs, round_.config.cell_count, round_.safe_reveal_count
            )
            gross = min(payout(round_.stake, current), max_payout(round_.stake))
        net, _ = apply_fee(gross, self.config.fee_bps)
        return net

    def is_revealed(self, round_id: int, row: int, col: int) -> bool:
        round_ = self._get(round_id)
        with round_.lock:
            index = self._check_bounds(round_, row, col)
            return index in round_.revealed_mask

    def bomb_mask(self, round_id: int) -> CellMask:
        """
        Bomb placement of a settled round.

        Raises:
            NotSettled: Round has not settled yet.
        """
        round_ = self._get(round_id)
        with round_.lock:
            if round_.state != RoundState.SETTLED:
                raise NotSettled(f"Round {round_id} is {round_.state.name}")
            return round_.bomb_mask.copy()

    def verify_round(self, round_id: int) -> bool:
        """
        Replay bomb placement from the stored seed.

        Also checks that no revealed tile of a round that was not lost
        sits on a bomb.

        Raises:
            NotActive: No seed has been delivered yet.
        """
        round_ = self._get(round_id)
        with round_.lock:
            if round_.seed is None:
                raise NotActive(f"Round {round_id} has no seed yet")
            if not verify_board(
                round_.seed, round_.config.cell_count, round_.bombs,
                round_.bomb_mask,
            ):
                return False
            return (
                round_.outcome == RoundOutcome.LOST
                or round_.revealed_mask.isdisjoint(round_.bomb_mask)
            )

    def rounds_in_state(self, state: RoundState) -> List[int]:
        """Ids of all rounds currently in state, ascending."""
        with self._lock:
            rounds = list(self._rounds.values())
        return [r.round_id for r in rounds if r.state == state]
