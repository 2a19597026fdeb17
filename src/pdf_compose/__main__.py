"""Entry point for ``python -m pdf_compose``."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pdf_compose.composer import ComposerConfig, compose
from pdf_compose.direction import Direction
from pdf_compose.exceptions import CompositionError
from pdf_compose.stamp import TEMPLATES


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pdf_compose",
        description="Merge, normalize and stamp a print-ready PDF",
    )
    parser.add_argument("content", help="Content PDF produced upstream")
    parser.add_argument("--attachment", help="Optional attachment PDF")
    insert = parser.add_mutually_exclusive_group()
    insert.add_argument("--insert", help="Boilerplate PDF appended last")
    insert.add_argument(
        "--with-insert", action="store_true",
        help="Append the insert configured by COMPOSE_INSERT_PATH",
    )
    parser.add_argument(
        "--direction", choices=[d.value for d in Direction],
        default=Direction.FORWARD.value,
    )
    parser.add_argument("--template", choices=sorted(TEMPLATES))
    parser.add_argument("--output-dir", help="Directory for the final PDF")
    parser.add_argument("--name", help="Base name of the final PDF")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
    log = logging.getLogger(__name__)

    try:
        config = ComposerConfig.from_env()
    except ValueError as exc:
        log.error("Configuration error: %s", exc)
        sys.exit(1)

    if args.template:
        config.template = args.template
    if args.output_dir:
        config.output_dir = Path(args.output_dir)

    insert = args.insert
    if args.with_insert:
        insert = config.insert_path

    try:
        result = compose(
            args.content,
            attachment=args.attachment,
            insert=insert,
            direction=Direction(args.direction),
            config=config,
            output_name=args.name,
        )
    except CompositionError as exc:
        log.error("Composition failed: %s", exc)
        sys.exit(1)

    print(json.dumps(result.to_dict(), indent=2))


if __name__ == "__main__":
    main()
