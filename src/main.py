"""ASMSPLIT - Splits a compiler assembly listing into subroutines."""

import argparse
import json
import logging
import sys
from pathlib import Path

from listing import read_listing
from segmenter import (
    SegmentationResult,
    SegmenterConfig,
    SubroutineFormatter,
    error_to_dict,
    metadata_to_json,
    segment_listing,
)


from typing import Optional


def split_file(
    input_path: Path,
    output_path: Optional[Path] = None,
    as_json: bool = False,
    config: Optional[SegmenterConfig] = None,
) -> SegmentationResult:
    lines = read_listing(input_path)
    result = segment_listing(lines, config)
    if not result.ok:
        return result

    if as_json:
        output = metadata_to_json(result.subroutines) + "\n"
    else:
        output = SubroutineFormatter().format(result.subroutines)

    if output_path is None:
        sys.stdout.write(output)
    else:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(output, encoding="utf-8")

    return result


def main() -> int:
    argparser = argparse.ArgumentParser(
        description="Split an assembly listing into per-function subroutines"
    )
    argparser.add_argument("input", type=Path, help="Input assembly file")
    argparser.add_argument(
        "-o", "--output", type=Path, help="Output file (default: stdout)"
    )
    argparser.add_argument(
        "--json", action="store_true", help="Emit a JSON summary instead of text"
    )
    argparser.add_argument(
        "--no-closure",
        action="store_true",
        help="Cut each body at its first return without following local jumps",
    )
    argparser.add_argument(
        "--allow-unreferenced-labels",
        action="store_true",
        help="Ignore labels that no jump in the body refers to",
    )
    argparser.add_argument(
        "--keep-prologue",
        action="store_true",
        help="Keep stack frame setup instructions in the bodies",
    )
    argparser.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug information"
    )

    args = argparser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.input.exists():
        print(f"Error: Input file not found: {args.input}", file=sys.stderr)
        return 1

    config = SegmenterConfig(
        resolve_closure=not args.no_closure,
        allow_unreferenced_labels=args.allow_unreferenced_labels,
        strip_prologue=not args.keep_prologue,
    )

    try:
        result = split_file(
            args.input, args.output, as_json=args.json, config=config
        )
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if result.error is not None:
        if args.json:
            print(json.dumps({"error": error_to_dict(result.error)}, indent=2))
        print(f"Error: {result.error}", file=sys.stderr)
        return 1

    if args.output is not None:
        print(
            f"Segmented: {args.input} -> {args.output} "
            f"({len(result.subroutines)} subroutines)"
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
