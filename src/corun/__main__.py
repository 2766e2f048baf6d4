"""Print the demo transcripts: ``python -m corun [demo ...]``."""

from __future__ import annotations

import argparse
import logging
from typing import TYPE_CHECKING

from corun._internal.clock import MonotonicClock, VirtualClock
from corun._internal.executor import Executor
from corun.demos import DEMOS

if TYPE_CHECKING:
    from collections.abc import Sequence


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="corun",
        description="Run the cooperative concurrency demos.",
    )
    parser.add_argument(
        "demos",
        nargs="*",
        metavar="DEMO",
        help=f"demos to run (default: all of {', '.join(DEMOS)})",
    )
    parser.add_argument(
        "--real-time",
        action="store_true",
        help="wait on the wall clock instead of the virtual clock",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="runtime log level (default: %(default)s)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if unknown := sorted(set(args.demos) - DEMOS.keys()):
        parser.error(f"unknown demo(s): {', '.join(unknown)}")
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    for key in args.demos or DEMOS:
        title, demo = DEMOS[key]
        clock = MonotonicClock() if args.real_time else VirtualClock()
        print(f"\n=== {title} ===")  # noqa: T201
        with Executor(clock=clock) as executor:
            for line in demo(executor):
                print(line)  # noqa: T201
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
