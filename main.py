#!/usr/bin/env python3
"""
Tiles - Main entry point.

Usage:
    python main.py play [--rows R] [--cols C] [--bombs B] [--reveals N]
    python main.py evaluate [--agent {random,target}] [--games N]
    python main.py compare [--games N] [--output PATH]
    python main.py verify --seed HEX [--rows R] [--cols C] [--bombs B]
"""
import argparse
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

from agents import RandomAgent, TargetAgent
from simulation import Evaluator, SimulationConfig
from tiles.board import cell_position, place_bombs, render_board
from tiles.config import DEFAULT_CALLBACK_BUDGET, DEFAULT_STAKE, EngineConfig
from tiles.engine import FeeFunding, RoundEngine
from tiles.errors import TilesError, ValidationError
from tiles.fixed_point import WAD, format_wad, to_wad
from tiles.payout import max_payout
from tiles.randomness import LocalRandomnessService
from tiles.round import RoundState
from tiles.sampler import seed_from_hex
from tiles.wallet import InMemoryWallet


def play(args: argparse.Namespace) -> None:
    """Play one scripted round against the in-memory services."""
    config = EngineConfig.from_env()
    wallet = InMemoryWallet()
    randomness = LocalRandomnessService()
    engine = RoundEngine(randomness, wallet, config)
    randomness.callback = engine.on_seed_delivered

    stake = args.stake
    engine.treasury.fund(max_payout(stake), funder=config.operator)

    round_id = engine.create_round("player", args.rows, args.cols, args.bombs, stake)
    quote = randomness.quote_price(DEFAULT_CALLBACK_BUDGET)
    correlation_id = engine.request_seed(
        round_id, DEFAULT_CALLBACK_BUDGET, "player", payment=quote,
        funding=FeeFunding.EXACT,
    )
    seed = seed_from_hex(args.seed) if args.seed else None
    randomness.fulfill(correlation_id, seed)

    print(f"Round {round_id}: {args.rows}x{args.cols}, {args.bombs} bombs, "
          f"stake {format_wad(stake)}")
    print(f"Seed: 0x{engine.get_round(round_id).seed.hex()}")

    for index in range(args.rows * args.cols):
        view = engine.get_round(round_id)
        if view.state != RoundState.ACTIVE:
            break
        if view.safe_reveal_count >= args.reveals:
            settlement = engine.cash_out(round_id, "player")
            print(f"Cashed out at x{settlement.multiplier / WAD:.2f}: "
                  f"{format_wad(settlement.net)}")
            break
        row, col = cell_position(args.cols, index)
        result = engine.reveal_tile(round_id, row, col, "player")
        if result.is_bomb:
            print(f"({row}, {col}) BOMB - stake lost")
        else:
            print(f"({row}, {col}) safe, x{result.multiplier / WAD:.2f}")
            if result.settlement is not None:
                print(f"Settled {result.settlement.outcome.name}: "
                      f"{format_wad(result.settlement.net)}")

    print()
    print(render_board(args.rows, args.cols, engine.bomb_mask(round_id)))
    print(f"Board verified from seed: {engine.verify_round(round_id)}")
    print(f"Treasury balance: {format_wad(engine.treasury.balance)}")


def stake_amount(text: str) -> int:
    """Parse a --stake value into wad units."""
    try:
        return to_wad(text)
    except (ValidationError, ArithmeticError) as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def make_agent(name: str, args: argparse.Namespace):
    if name == "random":
        return RandomAgent(args.rows, args.cols, seed=args.seed)
    if name == "target":
        return TargetAgent(args.rows, args.cols, target=args.target, seed=args.seed)
    raise ValueError(f"Unknown agent: {name}")


def simulation_config(args: argparse.Namespace) -> SimulationConfig:
    return SimulationConfig(
        rows=args.rows,
        cols=args.cols,
        bombs=args.bombs,
        stake=DEFAULT_STAKE,
        fee_bps=args.fee_bps,
        num_episodes=args.games,
        seed=args.seed,
    )


def print_stats(name: str, stats) -> None:
    summary = stats.to_dict()
    print(f"Results for {name}:")
    print(f"  RTP: {summary['rtp']:.1%}")
    print(f"  Bust rate: {summary['bust_rate']:.1%}")
    print(f"  Avg safe reveals: {summary['avg_safe_reveals']:.2f}")
    print(f"  Avg multiplier: {summary['avg_multiplier']:.3f}")


def evaluate(args: argparse.Namespace) -> None:
    """Evaluate a specific agent."""
    agent = make_agent(args.agent, args)
    evaluator = Evaluator(simulation_config(args))

    print(f"\nEvaluating {args.agent} over {args.games} rounds...")
    print_stats(args.agent, evaluator.evaluate(agent))


def compare(args: argparse.Namespace) -> None:
    """Compare the random agent with a sweep of target agents."""
    agents = {"Random": RandomAgent(args.rows, args.cols, seed=args.seed)}
    max_safe = args.rows * args.cols - args.bombs
    for target in sorted({1, max(1, max_safe // 4), max(1, max_safe // 2), max_safe}):
        agents[f"Target {target}"] = TargetAgent(args.rows, args.cols, target=target)

    evaluator = Evaluator(simulation_config(args))
    results = evaluator.compare(agents)

    print("\n" + "=" * 56)
    print("Agent Comparison Results")
    print("=" * 56)
    print(f"{'Agent':<16} {'RTP':<10} {'Bust Rate':<12} {'Avg Reveals':<12}")
    print("-" * 56)

    for name, stats in results.items():
        summary = stats.to_dict()
        print(
            f"{name:<16} {summary['rtp']:>8.1%} "
            f"{summary['bust_rate']:>10.1%} "
            f"{summary['avg_safe_reveals']:>12.2f}"
        )

    if args.output:
        path = Evaluator.save(results, args.output)
        print(f"\nResults saved to: {path}")


def verify(args: argparse.Namespace) -> None:
    """Recompute a board from its seed."""
    seed = seed_from_hex(args.seed)
    mask = place_bombs(seed, args.rows * args.cols, args.bombs)
    print(render_board(args.rows, args.cols, mask))
    print(f"Bomb cells: {mask.indices()}")
    print(f"Bitmap: {int(mask):#x}")


def add_board_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--rows", type=int, default=6, help="Board rows")
    parser.add_argument("--cols", type=int, default=6, help="Board columns")
    parser.add_argument("--bombs", type=int, default=8, help="Number of bombs")


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        description="Tiles - Play, simulate and verify tiles rounds"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log engine events")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Play command
    play_parser = subparsers.add_parser("play", help="Play one scripted round")
    add_board_arguments(play_parser)
    play_parser.add_argument(
        "--reveals", type=int, default=3, help="Safe reveals before cashing out"
    )
    play_parser.add_argument(
        "--stake", type=stake_amount, default="0.01", help="Stake in whole units"
    )
    play_parser.add_argument("--seed", default=None, help="Hex seed (default: random)")

    # Evaluate command
    eval_parser = subparsers.add_parser("evaluate", help="Evaluate an agent")
    add_board_arguments(eval_parser)
    eval_parser.add_argument(
        "--agent", choices=["random", "target"], default="target", help="Agent to evaluate"
    )
    eval_parser.add_argument("--target", type=int, default=3, help="Target agent stop point")
    eval_parser.add_argument("--games", type=int, default=1000, help="Number of rounds")
    eval_parser.add_argument("--fee-bps", type=int, default=0, help="House fee")
    eval_parser.add_argument("--seed", type=int, default=None, help="Simulation seed")

    # Compare command
    compare_parser = subparsers.add_parser("compare", help="Compare agents")
    add_board_arguments(compare_parser)
    compare_parser.add_argument("--games", type=int, default=1000, help="Rounds per agent")
    compare_parser.add_argument("--fee-bps", type=int, default=0, help="House fee")
    compare_parser.add_argument("--seed", type=int, default=0, help="Simulation seed")
    compare_parser.add_argument("--output", default=None, help="Write JSON results here")

    # Verify command
    verify_parser = subparsers.add_parser("verify", help="Recompute a board from a seed")
    add_board_arguments(verify_parser)
    verify_parser.add_argument("--seed", required=True, help="Hex seed")

    return parser


def main() -> None:
    """Parse arguments and run the appropriate command."""
    parser = build_parser()
    args = parser.parse_args()
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    commands = {"play": play, "evaluate": evaluate, "compare": compare, "verify": verify}
    if args.command not in commands:
        parser.print_help()
        return
    try:
        commands[args.command](args)
    except TilesError as exc:
        parser.exit(1, f"error: {exc}\n")


if __name__ == "__main__":
    main()
