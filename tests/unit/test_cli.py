"""
Unit tests for command-line argument handling.
"""
import argparse

import pytest
from main import build_parser, stake_amount


class TestStakeArgument:
    """Test parsing of --stake."""

    def test_default_stake(self) -> None:
        args = build_parser().parse_args(["play"])
        assert args.stake == 10 ** 16

    def test_decimal_stake(self) -> None:
        assert stake_amount("0.5") == 5 * 10 ** 17

    @pytest.mark.parametrize("text", ["abc", "1e", "inf", "nan", "-1", "0.0000000000000000001"])
    def test_bad_stake_rejected(self, text) -> None:
        with pytest.raises(argparse.ArgumentTypeError):
            stake_amount(text)

    def test_bad_stake_exits_with_usage(self, capsys) -> None:
        """The parser reports the bad value instead of a traceback."""
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["play", "--stake", "abc"])
        assert exc_info.value.code == 2
        assert "--stake" in capsys.readouterr().err
