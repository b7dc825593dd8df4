# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""DomSnap CLI: snapshot and adaptive commands.

Usage:
    domsnap snapshot FILE [-k K] [-l L] [-m M] [--format html|json]
    domsnap adaptive FILE [--max-tokens N] [--max-iterations N] [--verbose]

The snapshot goes to stdout; logs, reports and errors go to stderr.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from lxml import etree

from domsnap.errors import DocumentResolutionError, DomSnapError


def _load_root(path_str: str, root_tag: str) -> etree._Element:
    """Parse an HTML file and pick the snapshot root.

    ``root_tag`` is "html" (document element), "body" (falls back to the
    document element when the parser produced no body) or any tag name,
    whose first occurrence is used.
    """
    import lxml.html

    path = Path(path_str)
    tree = lxml.html.parse(str(path))
    document = tree.getroot()
    if document is None:
        raise DocumentResolutionError(f"{path} contains no elements")

    tag = root_tag.lower()
    if tag == "html":
        return document
    if document.tag == tag:
        return document
    found = next(document.iter(tag), None)
    if found is not None:
        return found
    if tag == "body":
        return document
    raise DocumentResolutionError(f"No <{tag}> element in {path}")


def _options_from_args(args: argparse.Namespace):
    from domsnap.options import SnapshotOptions

    overrides: dict[str, Any] = {}
    if args.preserve_attribute is not None:
        overrides["preserve_attribute"] = args.preserve_attribute
    for flag, name in (
        ("assign_uids", "assign_unique_ids"),
        ("keep_unknown", "keep_unknown_elements"),
        ("skip_markdown", "skip_markdown_translation"),
        ("debug", "debug"),
    ):
        if getattr(args, flag):
            overrides[name] = True
    return SnapshotOptions.from_env(**overrides)


def _emit(snapshot, args: argparse.Namespace) -> None:
    """Write the snapshot to stdout in the requested format."""
    from domsnap.serializer import to_dict

    exact = None
    if args.exact_tokens:
        from domsnap.tokens import count_tokens

        exact = count_tokens(snapshot.serialized_html)

    if args.format == "json":
        data = to_dict(snapshot)
        if exact is not None:
            data["exact_tokens"] = exact
        print(json.dumps(data, indent=2, ensure_ascii=False))
        return

    print(snapshot.serialized_html)
    meta = snapshot.meta
    summary = (
        f"{meta.original_size} → {meta.snapshot_size} chars "
        f"(ratio {meta.size_ratio:.3f}, ~{meta.estimated_tokens} tokens"
    )
    if exact is not None:
        summary += f", {exact} cl100k_base tokens"
    print(summary + ")", file=sys.stderr)


def _print_attempts(attempts) -> None:
    from tabulate import tabulate

    rows = [
        [i, f"{a.k:.4f}", f"{a.l:.4f}", f"{a.m:.4f}", a.estimated_tokens] for i, a in enumerate(attempts)
    ]
    print(tabulate(rows, headers=["#", "k", "l", "m", "tokens"], tablefmt="simple"), file=sys.stderr)


def cmd_snapshot(args: argparse.Namespace) -> None:
    """Single transform with explicit parameters."""
    from domsnap.pipeline import transform

    root = _load_root(args.file, args.root)
    snapshot = transform(root, args.k, args.l, args.m, _options_from_args(args))
    _emit(snapshot, args)


def cmd_adaptive(args: argparse.Namespace) -> None:
    """Search parameters that fit a token budget."""
    from domsnap.adaptive import adaptive_transform
    from domsnap.errors import BudgetExceededError

    root = _load_root(args.file, args.root)
    try:
        snapshot = adaptive_transform(root, args.max_tokens, args.max_iterations, _options_from_args(args))
    except BudgetExceededError as e:
        if args.verbose:
            _print_attempts(e.attempts)
        raise
    if args.verbose:
        _print_attempts(snapshot.attempts)
        params = snapshot.parameters
        print(
            f"Selected k={params.k:.4f} l={params.l:.4f} m={params.m:.4f} after {params.iterations_used} retries",
            file=sys.stderr,
        )
    _emit(snapshot, args)


def _add_common_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument("file", metavar="FILE", help="HTML file to snapshot")
    p.add_argument(
        "--root",
        default="body",
        metavar="TAG",
        help="Root element: body (default), html, or the first element with this tag",
    )
    p.add_argument("--format", choices=["html", "json"], default="html", help="Output format (default: html)")
    p.add_argument("--exact-tokens", action="store_true", help="Also count cl100k_base tokens")
    p.add_argument("--preserve-attribute", metavar="NAME", help='Preserve marker attribute ("" disables)')
    p.add_argument("--assign-uids", action="store_true", help="Write data-uid on containers/interactive elements")
    p.add_argument("--keep-unknown", action="store_true", help="Keep unclassified elements")
    p.add_argument("--skip-markdown", action="store_true", help="Leave content elements as markup")
    p.add_argument("--debug", action="store_true", help="Pretty-print the snapshot")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="DomSnap CLI", prog="domsnap")
    parser.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")
    parser.add_argument("--log-json", action="store_true", help="Emit logs as JSON lines")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_snapshot = subparsers.add_parser("snapshot", help="Reduce a document with explicit k, l, m")
    _add_common_arguments(p_snapshot)
    p_snapshot.add_argument("-k", type=float, default=0.0, help="Container merge aggressiveness, 0..1 or inf")
    p_snapshot.add_argument("-l", type=float, default=0.0, help="Text compression aggressiveness, 0..1")
    p_snapshot.add_argument("-m", type=float, default=0.0, help="Attribute retention threshold, 0..1")
    p_snapshot.set_defaults(func=cmd_snapshot)

    p_adaptive = subparsers.add_parser("adaptive", help="Find parameters that fit a token budget")
    _add_common_arguments(p_adaptive)
    p_adaptive.add_argument("--max-tokens", type=int, default=32768, help="Token budget (default: 32768)")
    p_adaptive.add_argument("--max-iterations", type=int, default=5, help="Retry cap (default: 5)")
    p_adaptive.add_argument("-v", "--verbose", action="store_true", help="Print the attempt table to stderr")
    p_adaptive.set_defaults(func=cmd_adaptive)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    from domsnap.logging_config import configure

    configure(json_output=args.log_json, level=args.log_level)

    try:
        args.func(args)
    except KeyboardInterrupt:
        raise
    except DomSnapError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except (OSError, etree.ParserError, etree.XMLSyntaxError) as e:
        print(f"Error: cannot read {args.file}: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
