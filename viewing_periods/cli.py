from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .errors import ConfigurationError, NormalizationError
from .logs import setup_logging
from .normalize import read
from .rules import DEFAULT_ENCODING

log = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Normalize a viewing-period CSV/TSV export.")
    p.add_argument("path", help="Input file; the .csv or .tsv extension selects the delimiter.")
    p.add_argument("--encoding", default=DEFAULT_ENCODING, help="Text encoding of the input file.")
    p.add_argument("--json", action="store_true", help="Print one JSON object per period.")
    p.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...).")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        periods = read(args.path, encoding=args.encoding)
    except ConfigurationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except (NormalizationError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    for period in periods:
        print(period.model_dump_json() if args.json else str(period))

    log.info("normalized %d periods from %s", len(periods), args.path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
