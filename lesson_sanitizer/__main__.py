"""Command-line entrypoint: sanitize one snippet and print the result as JSON."""

import argparse
import json
import sys

from .pipeline import sanitize


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(prog="lesson-sanitizer", description=__doc__)
    ap.add_argument("file", nargs="?", help="snippet to sanitize (default: stdin)")
    ap.add_argument("--verbose", action="store_true", help="include repairs, warnings and stage")
    args = ap.parse_args(argv)

    if args.file:
        try:
            with open(args.file, encoding="utf-8", errors="replace") as f:
                raw = f.read()
        except OSError as e:
            print(f"[lesson-sanitizer: cannot read {args.file}: {e}]", file=sys.stderr)
            return 2
    else:
        raw = sys.stdin.read()

    result = sanitize(raw)
    payload = result.to_dict()
    if args.verbose:
        payload["repairs"] = list(result.repairs)
        payload["warnings"] = list(result.warnings)
        payload["stage"] = result.stage
    print(json.dumps(payload, indent=2))
    return 0 if result.accepted else 1


if __name__ == "__main__":
    sys.exit(main())
