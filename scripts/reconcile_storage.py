"""Report (and optionally delete) uploaded images with no scan record."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from melanoscan.services.reconcile import sweep_orphans
from melanoscan.services.storage import get_document_store, get_object_store
from melanoscan.utils import logger


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sweep objects orphaned by failed record writes")
    parser.add_argument("--delete", action="store_true", help="Delete orphans instead of only listing them")
    parser.add_argument(
        "--grace-seconds",
        type=float,
        default=3600.0,
        help="Skip objects uploaded more recently than this",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    log = logger.get_logger(__name__)
    orphans = sweep_orphans(
        get_object_store(),
        get_document_store(),
        delete=args.delete,
        grace_seconds=args.grace_seconds,
    )
    for key in orphans:
        print(key)
    log.info("Reconciliation finished", orphans=len(orphans), deleted=args.delete)


if __name__ == "__main__":
    main()
