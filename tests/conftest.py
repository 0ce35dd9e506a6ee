"""
Pytest configuration and shared fixtures.
"""
import pytest
import sys
from pathlib import Path

# Add src to path for imports, and the project root for the CLI module
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(1, str(Path(__file__).parent.parent))

from tiles import (
    EngineConfig,
    InMemoryWallet,
    LocalRandomnessService,
    RoundConfig,
    RoundEngine,
    WAD,
)
from tiles.config import DEFAULT_CALLBACK_BUDGET


OWNER = "alice"
OPERATOR = "operator"
SEED = bytes(range(32))


# ============================================================================
# Collaborator Fixtures
# ============================================================================

@pytest.fixture
def wallet() -> InMemoryWallet:
    """Create an in-memory payout wallet."""
    return InMemoryWallet()


@pytest.fixture
def randomness() -> LocalRandomnessService:
    """Create a local randomness service with a flat fee of 1000."""
    return LocalRandomnessService(base_fee=1000, fee_per_unit=0)


# ============================================================================
# Engine Fixtures
# ============================================================================

@pytest.fixture
def engine_config() -> EngineConfig:
    """Engine config with a small max stake and no fee."""
    return EngineConfig(operator=OPERATOR, max_stake=10 * WAD, fee_bps=0)


@pytest.fixture
def engine(randomness, wallet, engine_config) -> RoundEngine:
    """Engine wired to the local services with an empty treasury."""
    engine = RoundEngine(randomness, wallet, engine_config)
    randomness.callback = engine.on_seed_delivered
    return engine


@pytest.fixture
def funded_engine(engine) -> RoundEngine:
    """Engine whose treasury holds 1000 units."""
    engine.treasury.fund(1000, funder=OPERATOR)
    return engine


def _open_round(
    engine: RoundEngine,
    rows: int = 2,
    cols: int = 2,
    bombs: int = 1,
    stake: int = 100,
    seed: bytes = SEED,
) -> int:
    """Create a round, pay for its seed and deliver it."""
    round_id = engine.create_round(OWNER, rows, cols, bombs, stake)
    quote = engine.randomness.quote_price(DEFAULT_CALLBACK_BUDGET)
    correlation_id = engine.request_seed(
        round_id, DEFAULT_CALLBACK_BUDGET, OWNER, payment=quote
    )
    engine.randomness.fulfill(correlation_id, seed)
    return round_id


def _safe_cells(engine: RoundEngine, round_id: int):
    """(row, col) of every safe cell of an active round, in index order."""
    round_ = engine._get(round_id)
    return [
        divmod(index, round_.cols)
        for index in range(round_.config.cell_count)
        if index not in round_.bomb_mask
    ]


def _bomb_cells(engine: RoundEngine, round_id: int):
    """(row, col) of every bomb of an active round, in index order."""
    round_ = engine._get(round_id)
    return [divmod(index, round_.cols) for index in round_.bomb_mask]


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def small_config() -> RoundConfig:
    """2x2 board with a single bomb."""
    return RoundConfig(2, 2, 1)


@pytest.fixture
def demo_config() -> RoundConfig:
    """Default 6x6 board with 8 bombs."""
    return RoundConfig(6, 6, 8)


# ============================================================================
# Helper Fixtures
# ============================================================================

@pytest.fixture
def open_round():
    """Function that takes a round on an engine all the way to ACTIVE."""
    return _open_round


@pytest.fixture
def safe_cells():
    """Function listing the safe cells of an active round."""
    return _safe_cells


@pytest.fixture
def bomb_cells():
    """Function listing the bomb cells of an active round."""
    return _bomb_cells
