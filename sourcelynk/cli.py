"""CLI entrypoint for sourcelynk."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from . import __version__
from .config import ConfigError, SourceLynkConfig, load_config
from .logging import configure_logging, get_logger
from .pipeline import Pipeline


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sourcelynk",
        description="Embed source link metadata into debug-information files.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Sets the level of verbosity (repeat for more detail).",
    )
    parser.add_argument(
        "-n",
        "--dry-run",
        "--dryrun",
        dest="dry_run",
        action="store_true",
        help="Run without modifying the binaries; print the would-be documents.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a .sourcelynk.yml file (defaults to the one in PATH).",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to search for debug info files (defaults to current directory).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for sourcelynk."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbosity=args.verbose)
    logger = get_logger("cli")

    root = Path(args.path)
    try:
        if args.config is not None:
            config = load_config(args.config)
        elif root.is_dir():
            config = load_config(root)
        else:
            config = SourceLynkConfig(root=root)
        pipeline = Pipeline.from_config(config)
    except (ConfigError, OSError) as exc:
        parser.exit(1, f"sourcelynk: invalid configuration: {exc}\n")

    try:
        pipeline.run(root, dry_run=bool(args.dry_run))
    except (FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(1, f"sourcelynk: {exc}\n")
    except OSError as exc:
        logger.debug("Traversal of %s failed", root, exc_info=True)
        parser.exit(1, f"sourcelynk: unable to search {root}: {exc}\n")


if __name__ == "__main__":
    main(sys.argv[1:])
