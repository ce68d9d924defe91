"""``airengine parse``: print the AST of a source file as JSON."""

from __future__ import annotations

import argparse
import json

from airengine.ast import to_dict
from airengine.lang import parse

from ..loading import read_source


def cmd_parse(args: argparse.Namespace) -> int:
    _, source = read_source(args.file)
    ast = parse(source)
    print(json.dumps(to_dict(ast), indent=2))
    return 0


def add_parse_command(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("parse", help="Parse an .air file and print its AST as JSON")
    parser.add_argument("file", help="Path to the .air source file")
    parser.set_defaults(func=cmd_parse)
