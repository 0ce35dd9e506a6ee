"""
Unit tests for board and engine configuration.
"""
import os

import pytest
from tiles import DEMO, LARGE, SMALL, EngineConfig, RoundConfig, WAD
from tiles.config import DEFAULT_MAX_STAKE, DEFAULT_OPERATOR
from tiles.errors import InvalidBombCount, InvalidDimensions, InvalidFee, InvalidStake


class TestRoundConfig:
    """Test board shape validation."""

    def test_defaults(self) -> None:
        config = RoundConfig()
        assert (config.rows, config.cols, config.bombs) == (6, 6, 8)
        assert config.cell_count == 36
        assert config.max_safe == 28

    def test_presets(self) -> None:
        assert DEMO == RoundConfig(6, 6, 8)
        assert SMALL.cell_count == 4
        assert LARGE.cell_count == 100

    def test_largest_board(self) -> None:
        assert RoundConfig(10, 10, 99).max_safe == 1

    @pytest.mark.parametrize("rows,cols", [(0, 1), (1, 0), (11, 1), (1, 11)])
    def test_invalid_dimensions(self, rows, cols) -> None:
        with pytest.raises(InvalidDimensions):
            RoundConfig(rows, cols, 1)

    @pytest.mark.parametrize("rows,cols", [(2.0, 2), (2, 2.5), (True, 2), ("2", 2)])
    def test_non_int_dimensions(self, rows, cols) -> None:
        with pytest.raises(InvalidDimensions):
            RoundConfig(rows, cols, 1)

    @pytest.mark.parametrize("bombs", [1.0, True, "1"])
    def test_non_int_bomb_count(self, bombs) -> None:
        with pytest.raises(InvalidBombCount):
            RoundConfig(2, 2, bombs)

    def test_single_cell_has_no_valid_bomb_count(self) -> None:
        with pytest.raises(InvalidBombCount):
            RoundConfig(1, 1, 1)

    def test_validation_errors_are_value_errors(self) -> None:
        with pytest.raises(ValueError):
            RoundConfig(3, 3, 9)


class TestEngineConfig:
    """Test engine settings and environment loading."""

    def test_defaults(self) -> None:
        config = EngineConfig()
        assert config.operator == DEFAULT_OPERATOR
        assert config.max_stake == DEFAULT_MAX_STAKE == 10 * WAD
        assert config.fee_bps == 0

    def test_invalid_fee(self) -> None:
        with pytest.raises(InvalidFee):
            EngineConfig(fee_bps=10_001)

    def test_invalid_max_stake(self) -> None:
        with pytest.raises(InvalidStake):
            EngineConfig(max_stake=0)

    def test_from_env(self, monkeypatch, tmp_path) -> None:
        monkeypatch.setenv("TILES_OPERATOR", "house")
        monkeypatch.setenv("TILES_MAX_STAKE", "5000")
        monkeypatch.setenv("TILES_FEE_BPS", "250")
        config = EngineConfig.from_env(str(tmp_path / ".env"))
        assert config == EngineConfig("house", 5000, 250)

    def test_from_env_defaults(self, monkeypatch, tmp_path) -> None:
        for name in ("TILES_OPERATOR", "TILES_MAX_STAKE", "TILES_FEE_BPS"):
            monkeypatch.delenv(name, raising=False)
        assert EngineConfig.from_env(str(tmp_path / ".env")) == EngineConfig()

    def test_from_env_reads_dotenv(self, monkeypatch, tmp_path) -> None:
        for name in ("TILES_OPERATOR", "TILES_MAX_STAKE", "TILES_FEE_BPS"):
            monkeypatch.delenv(name, raising=False)
        dotenv = tmp_path / ".env"
        dotenv.write_text("TILES_FEE_BPS=125\n")
        try:
            assert EngineConfig.from_env(str(dotenv)).fee_bps == 125
        finally:
            os.environ.pop("TILES_FEE_BPS", None)

    def test_environment_beats_dotenv(self, monkeypatch, tmp_path) -> None:
        monkeypatch.setenv("TILES_FEE_BPS", "50")
        dotenv = tmp_path / ".env"
        dotenv.write_text("TILES_FEE_BPS=125\n")
        assert EngineConfig.from_env(str(dotenv)).fee_bps == 50
