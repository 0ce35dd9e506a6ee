#!/usr/bin/env python3
"""Watch an agent play tiles rounds."""
import time
import os
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

from tiles.config import RoundConfig
from tiles.environment import TilesEnv
from tiles.fixed_point import format_wad
from agents import TargetAgent


def clear_screen():
    os.system('cls' if os.name == 'nt' else 'clear')


def demo(delay: float = 0.3, games: int = 5, size: int = 6, bombs: int = 8, target: int = 4):
    """Run demo rounds with visualization."""
    config = RoundConfig(rows=size, cols=size, bombs=bombs)
    env = TilesEnv(config=config, render_mode="ansi")
    agent = TargetAgent(size, size, target=target, seed=0)

    print(f"Board: {size}x{size} with {bombs} bombs, cashing out after {target} safe tiles")
    print("Starting in 2 seconds...")
    time.sleep(2)

    total_paid = 0
    total_staked = 0

    for game in range(games):
        obs, info = env.reset()
        agent.reset()
        total_staked += env.stake

        clear_screen()
        print(f"=== Round {game + 1}/{games} ===\n")
        print(env.render())
        time.sleep(delay)

        done = False
        step = 0

        while not done:
            valid_actions = env.get_action_mask()
            action = agent.select_action(obs, valid_actions)

            obs, reward, terminated, truncated, info = env.step(action)
            done = terminated or truncated
            step += 1

            clear_screen()
            print(f"=== Round {game + 1}/{games} | Step {step} ===")
            if action == env.cash_out_action:
                print("Last move: cash out\n")
            else:
                print(f"Last move: ({action // size}, {action % size})\n")
            print(env.render())

            if done:
                total_paid += info["payout"]
                if info["outcome"] == "LOST":
                    print(f"\n*** BOOM (hit a bomb) ***")
                else:
                    print(f"\n*** {info['outcome']}: paid {format_wad(info['payout'])} ***")

            time.sleep(delay)

        time.sleep(1.0)  # Pause between rounds

    print(f"\n=== Final: paid {format_wad(total_paid)} on {format_wad(total_staked)} staked ===")


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser()
    parser.add_argument("--delay", type=float, default=0.3, help="Delay between moves")
    parser.add_argument("--games", type=int, default=5, help="Number of rounds")
    parser.add_argument("--size", type=int, default=6, help="Board size (NxN)")
    parser.add_argument("--bombs", type=int, default=None, help="Number of bombs (default: ~20%% of cells)")
    parser.add_argument("--target", type=int, default=4, help="Safe tiles before cashing out")
    args = parser.parse_args()

    # Default bombs to ~20% of cells
    bombs = args.bombs if args.bombs else max(1, int(args.size * args.size * 0.2))

    demo(delay=args.delay, games=args.games, size=args.size, bombs=bombs, target=args.target)
