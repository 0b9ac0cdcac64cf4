import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import yaml

from modbox.modbox_config import LoaderConfig, load_config
from modbox.modbox_runtime import RenderResult, RequestRunner
from modbox.modbox_serialize import deserialize, format_from_path, to_json


def read_request(source: str):
    """Read a request from a JSON/YAML file, or from stdin when source is '-'."""
    if source == "-":
        text = sys.stdin.read()
        fmt = None
    else:
        p = Path(source)
        text = p.read_text(encoding="utf-8")
        fmt = format_from_path(p)
    return deserialize(text, fmt=fmt)


async def run_request_file(source: str, config: LoaderConfig, as_json: bool = False) -> int:
    """Render a request file; print HTML (or the wire result) and return an exit status."""
    try:
        request = read_request(source)
    except FileNotFoundError:
        print(f"Error: file not found: {source}", file=sys.stderr)
        return 1
    except (ValueError, yaml.YAMLError) as e:
        print(f"Error: cannot parse request {source}: {e}", file=sys.stderr)
        return 1

    runner = RequestRunner(config)
    result: RenderResult = await runner.handle_request(request)

    if as_json:
        print(to_json(result.to_mapping()))
    elif result.status == 'success':
        print(result.html)

    if result.status == 'error':
        if not as_json:
            print(result.format_error(), file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="modbox",
        description="Load an in-memory module bundle and render its main component.",
    )
    parser.add_argument("request", help="request file (.json/.yaml), or - for stdin")
    parser.add_argument("--config", help="loader config file (.json/.yaml)")
    parser.add_argument("--json", action="store_true", help="print the result mapping as JSON")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    config = load_config(args.config) if args.config else LoaderConfig()
    return asyncio.run(run_request_file(args.request, config, as_json=args.json))


if __name__ == "__main__":
    sys.exit(main())
