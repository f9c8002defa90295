"""
Load a member register workbook into the database from the command line.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portal_backend.config import get_settings
from portal_backend.dependencies import get_db_client
from portal_backend.errors import message
from portal_backend.member_import import MemberImportError, import_members, woreda_choices

logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Import members from an .xlsx register")
    parser.add_argument("path", type=Path, help="Path to the .xlsx workbook")
    parser.add_argument(
        "-w",
        "--woreda",
        required=True,
        choices=woreda_choices(settings.woreda_count),
        help="Woreda every imported member belongs to",
    )
    parser.add_argument(
        "--uploaded-by-email",
        default=None,
        help="Email recorded as the uploader",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    if args.path.suffix.lower() != ".xlsx":
        logger.error(message("xlsx_required", "en"))
        return 2

    try:
        result = import_members(
            args.path.read_bytes(),
            args.woreda,
            get_db_client(),
            uploaded_by_email=args.uploaded_by_email,
            default_subcity=settings.default_subcity,
            woreda_count=settings.woreda_count,
        )
    except MemberImportError as exc:
        logger.error("%s: %s", args.path, message(exc.code, "en"))
        return 1

    stats = result.stats
    print(
        f"total={stats.total} inserted={stats.inserted} "
        f"duplicates={stats.duplicates} invalid={stats.invalid}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
