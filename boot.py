import argparse

import pygame

from game_context import GameContext
from scene_manager import SceneManager
from minigames.fruit_catcher.game import launch


def main():
    parser = argparse.ArgumentParser(description="Sky Fruit Catcher")
    parser.add_argument("--mode", choices=("solo", "versus"), default="versus")
    parser.add_argument("--difficulty", default="medium", help="easy | medium | hard | hell")
    parser.add_argument("--reward", default="roulette", help="roulette | none | life | gun")
    parser.add_argument("--start-level", type=int, default=1)
    parser.add_argument("--seed", default=None)
    parser.add_argument("--dev-gun", action="store_true", help="unlimited weapon reuse")
    parser.add_argument("--rematch", action="store_true", help="start a new match when one ends")
    args = parser.parse_args()

    context = GameContext()

    def on_exit(ctx):
        print(f"[Boot] Match finished: {ctx.last_result.get('outcome')} {ctx!r}")

    def first_scene(manager):
        return launch(
            manager,
            context,
            on_exit,
            mode=args.mode,
            difficulty=args.difficulty,
            reward=args.reward,
            start_level=args.start_level,
            seed=args.seed,
            dev_gun=args.dev_gun,
        )

    pygame.init()
    manager = SceneManager(first_scene, rematch_factory=first_scene if args.rematch else None)
    manager.run()


if __name__ == "__main__":
    main()
