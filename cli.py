from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from contractcheck.config import Settings
from contractcheck.formatter import format_json, format_text, summarize
from contractcheck.logging_utils import setup_logging
from contractcheck.manifest import ManifestError, load_manifest, run_manifest


def cmd_validate(args: argparse.Namespace) -> int:
    settings = Settings.load()
    path = Path(args.path).resolve()
    try:
        manifest = load_manifest(path)
        results = asyncio.run(run_manifest(manifest, base_dir=path.parent, settings=settings))
    except ManifestError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    output = format_json(results) if args.format == "json" else format_text(results)
    sys.stdout.write(output if output.endswith("\n") else output + "\n")
    return 0 if summarize(results).ok else 1


def cmd_kinds(_: argparse.Namespace) -> int:
    from contracts import ensure_kinds_registered, list_kinds

    settings = Settings.load()
    ensure_kinds_registered(settings.kind_entrypoint_group)
    kinds = {kind: f"{cls.__module__}.{cls.__name__}" for kind, cls in sorted(list_kinds().items())}
    print(json.dumps(kinds, ensure_ascii=False, indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    settings = Settings.load()
    setup_logging(settings.log_level, json_output=settings.log_json)

    parser = argparse.ArgumentParser(prog="contract-check")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_validate = sub.add_parser("validate", help="Validate every contract listed in a manifest JSON file")
    p_validate.add_argument("path")
    p_validate.add_argument("--format", choices=["text", "json"], default="text")
    p_validate.set_defaults(func=cmd_validate)

    p_kinds = sub.add_parser("kinds", help="List registered contract kinds")
    p_kinds.set_defaults(func=cmd_kinds)

    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
