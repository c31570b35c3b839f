"""Console entrypoint for the ``hh`` command."""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional


def main(argv: Optional[List[str]] = None) -> None:
    """Parse ``hh`` CLI arguments and dispatch to the runner."""

    parser = argparse.ArgumentParser(prog="hh")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("run", help="Validate one engine run against the reference")
    sub.add_parser("sweep", help="Validate every graph/configuration in a sweep file")

    args, rest = parser.parse_known_args(argv)
    if args.command == "run":
        from Hits_Harness.main import MainService

        if MainService(argv=rest).run():
            sys.exit(1)
    elif args.command == "sweep":
        from experiments.runner import main as sweep_main

        summary = sweep_main(rest)
        if summary["passed"] != summary["validated"]:
            sys.exit(1)


if __name__ == "__main__":
    main()
