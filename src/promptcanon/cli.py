"""Command line interface for converting recorded provider payloads."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Iterable, Sequence

from .config import ConversionConfig
from .core.adapters.registry import convert_sync, supported_providers
from .core.errors import ConversionError

LOGGER = logging.getLogger(__name__)

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _parse_key_value_pairs(pairs: Iterable[str]) -> dict[str, str]:
    options: dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise argparse.ArgumentTypeError(
                f"invalid key/value pair '{pair}'. Expected KEY=VALUE syntax."
            )
        key, value = pair.split("=", 1)
        key = key.strip()
        if not key:
            raise argparse.ArgumentTypeError("keys must not be empty")
        options[key] = value
    return options


def _read_json(source: str) -> Any:
    if source == "-":
        return json.load(sys.stdin)
    with Path(source).open(encoding="utf-8") as handle:
        return json.load(handle)


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--log-level",
        choices=_LOG_LEVELS,
        default="WARNING",
        help="Verbosity of conversion diagnostics written to stderr",
    )

    parser = argparse.ArgumentParser(
        description="Normalize LLM provider payloads into a canonical conversation"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert_parser = subparsers.add_parser(
        "convert", parents=[common], help="convert a recorded request/response pair"
    )
    convert_parser.add_argument("provider", help="Provider family that produced the payloads")
    convert_parser.add_argument(
        "--request",
        required=True,
        metavar="FILE",
        help="JSON file holding the request payload ('-' reads stdin)",
    )
    convert_parser.add_argument(
        "--response",
        required=True,
        metavar="FILE",
        help="JSON file holding the response object or stream events ('-' reads stdin)",
    )
    convert_parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="Indentation of the JSON written to stdout",
    )
    convert_parser.add_argument(
        "-o",
        "--option",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Conversion setting override, for example strict_output_items=false",
    )

    subparsers.add_parser("providers", parents=[common], help="list the supported provider families")
    return parser


def _handle_convert(args: argparse.Namespace) -> int:
    if args.request == "-" and args.response == "-":
        print("error: only one of --request and --response may read stdin", file=sys.stderr)
        return 1

    try:
        config = ConversionConfig.from_mapping(_parse_key_value_pairs(args.option))
    except (argparse.ArgumentTypeError, TypeError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    try:
        request = _read_json(args.request)
        response = _read_json(args.response)
    except (OSError, json.JSONDecodeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    try:
        conversation = convert_sync(args.provider, request, response, config=config)
    except ConversionError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    sys.stdout.write(json.dumps(conversation.to_dict(), indent=args.indent, ensure_ascii=False))
    sys.stdout.write("\n")
    return 0


def _handle_providers(args: argparse.Namespace) -> int:
    for provider in supported_providers():
        print(provider)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")
    LOGGER.debug("running command %s", args.command)
    if args.command == "convert":
        return _handle_convert(args)
    if args.command == "providers":
        return _handle_providers(args)
    parser.error("no command provided")
    return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
