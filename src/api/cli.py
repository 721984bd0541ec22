"""
どこで: `api.cli`（コマンドライン入口）。
何を: `drum-machine {pyglet,dpg,terminal}` でバリアントを選んで起動する argparse ランチャ。
なぜ: 3 種のフロントエンドを 1 つの入口から切り替えて起動するため。
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from common.decay import InvalidParameterError
from common.logging import setup_default_logging

from .drum_machine import VARIANTS, run_drum_machine

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="drum-machine",
        description="Envelope-driven drum machine equalizer (pyglet / Dear PyGui / terminal)",
    )
    p.add_argument("variant", nargs="?", default="pyglet", choices=VARIANTS)
    p.add_argument("--bpm", type=float, default=None, help="initial tempo")
    p.add_argument("--fps", type=int, default=None, help="frame rate")
    p.add_argument("--epsilon", type=float, default=None, help="envelope idle threshold")
    p.add_argument("--seconds", type=float, default=8.0, help="terminal variant duration")
    p.add_argument("--no-hud", action="store_true", help="hide the pyglet HUD")
    p.add_argument("--log-level", default="INFO")
    p.add_argument("--list", action="store_true", help="list variants and exit")
    p.add_argument("--init-only", action="store_true", help="build headless core and exit")
    return p


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_default_logging(args.log_level)

    if args.list:
        for name in VARIANTS:
            print(name)
        return 0

    try:
        machine = run_drum_machine(
            args.variant,
            bpm=args.bpm,
            fps=args.fps,
            epsilon=args.epsilon,
            seconds=args.seconds,
            show_hud=not args.no_hud,
            init_only=args.init_only,
        )
    except InvalidParameterError as e:
        logger.error("%s", e)
        return 2
    if machine is not None:
        logger.info(
            "headless drum machine ready: %d bpm, %d envelopes",
            machine.drummer.bpm,
            len(machine.equalizer.scheduler.envelopes),
        )
        machine.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
