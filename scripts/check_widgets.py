#!/usr/bin/env python3
"""Compile a directory of widget definitions and report every failure.

Runs the same pipeline as the API (parse, bind, merge, validate,
localize) without publishing anything. Useful as a pre-commit or CI
check for definition authors.

Model and process names are accepted as-is unless --models or
--processes lists the names that exist.

Usage:
    python scripts/check_widgets.py app/tables
    python scripts/check_widgets.py app/forms --kind form --models user,order
    python scripts/check_widgets.py app/tables --locale zh-cn --app-root app --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.widgets.binder import Binder  # noqa: E402
from src.widgets.catalog import Catalog  # noqa: E402
from src.widgets.loader import WidgetLoader  # noqa: E402
from src.widgets.localizer import LangPacks, Localizer  # noqa: E402
from src.widgets.schemas import WidgetKind  # noqa: E402
from src.widgets.validator import Validator  # noqa: E402


class AnyName:
    """Resolver accepting every name."""

    def resolve(self, name: str) -> Optional[Any]:
        return name


def _resolver(names: Optional[str]):
    if names is None:
        return AnyName()
    return Catalog({n.strip(): n.strip() for n in names.split(",") if n.strip()})


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Check widget definitions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("root", type=Path, help="Directory holding *.json definitions")
    parser.add_argument(
        "--kind",
        choices=[k.value for k in WidgetKind],
        default=WidgetKind.TABLE.value,
        help="Widget kind (default: table)",
    )
    parser.add_argument("--prefix", default="", help="Widget ID prefix")
    parser.add_argument("--models", help="Comma-separated model names that exist")
    parser.add_argument("--stores", help="Comma-separated store names that exist")
    parser.add_argument("--processes", help="Comma-separated process names that exist")
    parser.add_argument("--locale", default="", help="Apply this locale's language pack")
    parser.add_argument(
        "--app-root",
        type=Path,
        help="Directory holding langs/ (default: parent of root)",
    )
    parser.add_argument("--json", action="store_true", help="Print a JSON report")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s - %(message)s",
    )

    processes = _resolver(args.processes)
    loader = WidgetLoader(
        binder=Binder(
            models=_resolver(args.models),
            stores=_resolver(args.stores),
            processes=processes,
        ),
        validator=Validator(processes=None if args.processes is None else processes),
        localizer=Localizer(
            LangPacks(args.app_root or args.root.parent, args.locale, args.prefix)
        ),
        kind=WidgetKind(args.kind),
    )

    try:
        result = loader.compile_dir(args.root, args.prefix)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(
            {
                "compiled": sorted(result.descriptors),
                "failures": {wid: err.message for wid, err in result.failures},
            },
            indent=2,
        ))
    else:
        for wid in sorted(result.descriptors):
            print(f"  ok    {wid}")
        for wid, err in result.failures:
            print(f"  FAIL  {wid}: {err.message}")
        print(f"\n{len(result.descriptors)} compiled, {len(result.failures)} failed")

    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
