"""Resolve rows from the command line, without a host page.

Useful for checking what a cell will show before deploying the renderer,
or for diagnosing why a row renders empty (the lookup status tells a row
without comments apart from a failed request).

Examples:
  # Latest commenter of rows 10 and 11, with administrator matching
  lastcommenter --web-url https://contoso.example/sites/ops --list-id 5a1e... 10 11

  # Last-editor fallback, JSON output, explicit zone
  lastcommenter --web-url ... --list-id ... --variant editor_fallback --timezone Europe/Berlin --json 10

  # Pass credentials obtained elsewhere as a header
  lastcommenter --web-url ... --list-id ... --header "Authorization:Bearer $TOKEN" 10
"""

import argparse
import asyncio
import json
import sys
from typing import Optional, Sequence

import httpx

from lastcommenter.client import HttpxListClient
from lastcommenter.config import LastCommenterConfig, PipelineVariant
from lastcommenter.host import ListContext
from lastcommenter.models import Resolution
from lastcommenter.pipeline import CommentResolutionPipeline


def _header(value: str) -> tuple[str, str]:
    name, sep, content = value.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected NAME:VALUE, got {value!r}")
    return name.strip(), content.strip()


def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="lastcommenter",
        description="Show the latest commenter of list rows",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("rows", type=int, nargs="+", metavar="ROW", help="Row ids to resolve")
    parser.add_argument("--web-url", required=True, help="Absolute URL of the site hosting the list")
    parser.add_argument("--list-id", required=True, help="List GUID")
    parser.add_argument(
        "--variant",
        choices=[v.value for v in PipelineVariant],
        default=None,
        help="Pipeline variant (default: LASTCOMMENTER_VARIANT or admin_match)",
    )
    parser.add_argument("--timezone", default=None, help="IANA zone for timestamps (default: local zone)")
    parser.add_argument(
        "--header",
        type=_header,
        action="append",
        default=[],
        metavar="NAME:VALUE",
        help="Extra request header, may be repeated",
    )
    parser.add_argument("--timeout", type=float, default=10.0, help="Request timeout in seconds (default: 10)")
    parser.add_argument("--json", action="store_true", help="Print one JSON object per row")
    parser.add_argument("--verbose", action="store_true", help="Log every pipeline step")
    return parser.parse_args(argv)


def _config(args: argparse.Namespace) -> LastCommenterConfig:
    config = LastCommenterConfig.from_env()
    overrides: dict[str, object] = {}
    if args.variant is not None:
        overrides["variant"] = PipelineVariant(args.variant)
    if args.timezone is not None:
        overrides["display_timezone"] = args.timezone
    if args.verbose:
        overrides["verbose_diagnostics"] = True
    if not overrides:
        return config
    return LastCommenterConfig.model_validate({**config.model_dump(), **overrides})


def _print(resolution: Resolution, as_json: bool) -> None:
    if as_json:
        print(resolution.model_dump_json())
        return
    text = resolution.payload.text or "(empty)"
    print(f"row {resolution.row_id} [{resolution.annotation_status.value}]")
    for line in text.splitlines():
        print(f"  {line}")


async def run(args: argparse.Namespace) -> int:
    config = _config(args)
    async with httpx.AsyncClient(headers=dict(args.header), timeout=args.timeout) as http:
        pipeline = CommentResolutionPipeline(
            HttpxListClient(http),
            ListContext(list_id=args.list_id, web_url=args.web_url),
            config,
        )
        resolutions = await asyncio.gather(*(pipeline.resolve_row(row) for row in args.rows))
    for resolution in resolutions:
        _print(resolution, args.json)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_arguments(argv)
    if any(row < 0 for row in args.rows):
        print("Row ids must be non-negative", file=sys.stderr)
        return 2
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
