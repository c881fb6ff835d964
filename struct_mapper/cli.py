"""CLI entrypoint for struct-mapper."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from struct_mapper.core.config import build_config_schema, load_config
from struct_mapper.core.engine import Engine
from struct_mapper.core.exceptions import ConfigError, PersistenceError, SourceError
from struct_mapper.core.scheduler import Scheduler
from struct_mapper.core.writer import ArtifactWriter
from struct_mapper.emit.formatter import resolve_formatter
from struct_mapper.logging import configure_logging, get_logger

logger = get_logger("cli")


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'") from None
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="struct-mapper",
        description="Generate Go struct conversion functions from a mapping configuration.",
    )
    parser.add_argument(
        "--config",
        default="mapper.toml",
        help="Mapping configuration file (defaults to mapper.toml).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log generated files instead of writing them, with debug output.",
    )
    parser.add_argument(
        "--workers",
        "--routines",
        dest="workers",
        type=_positive_int,
        default=1,
        help="Number of parallel workers (defaults to 1).",
    )
    parser.add_argument(
        "--schema",
        action="store_true",
        help="Print the JSON Schema of the configuration file and exit.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for struct-mapper."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.debug))

    if args.schema:
        print(json.dumps(build_config_schema(), indent=2))
        return

    config_path = Path(args.config)
    root_dir = config_path.parent
    try:
        config = load_config(config_path)
        engine = Engine.from_config(config, root_dir, formatter=resolve_formatter())
    except (ConfigError, SourceError) as exc:
        parser.exit(1, f"{exc}\n")

    result = Scheduler(engine, workers=args.workers).run(engine.groups(config))

    if args.debug:
        for artifact in result.artifacts:
            logger.info("%s\n%s", artifact.path, artifact.content.decode("utf-8"))
        return

    try:
        written = ArtifactWriter(root_dir).write_all(result.artifacts)
    except PersistenceError as exc:
        parser.exit(1, f"{exc}\n")

    for path in written:
        print(f"Generated {_relativize(path)}")
    if result.errors:
        print(f"{len(result.errors)} group(s) failed; see warnings above.")


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
