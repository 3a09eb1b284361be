"""Run the expiry sweep from the command line or on a fixed interval.

    snapdrop-sweeper --once
    snapdrop-sweeper --interval 600
"""

import argparse
import logging
import time
from snapdrop.core.config import get_settings
from snapdrop.core.db import SessionLocal, get_engine
from snapdrop.core.logging_config import setup_logging
from snapdrop.core.storage import BlobStore, get_blob_store
from snapdrop.controllers.cleanup_controller import cleanup_expired
from snapdrop.models.base import Base
from snapdrop.models import paste_model, paste_file_model  # noqa: F401

logger = logging.getLogger("snapdrop.sweeper")


def run_once(session_factory=None, blobs: BlobStore | None = None) -> int:
    db = (session_factory or SessionLocal)()
    try:
        result = cleanup_expired(db, blobs or get_blob_store())
    finally:
        db.close()
    return result.deletedCount


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Delete expired pastes and their files.")
    parser.add_argument("--once", action="store_true", help="run a single sweep and exit")
    parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="seconds between sweeps (default: SWEEP_INTERVAL_SECONDS)",
    )
    args = parser.parse_args(argv)

    setup_logging()
    Base.metadata.create_all(bind=get_engine())
    interval = args.interval or get_settings().sweep_interval_seconds

    while True:
        try:
            run_once()
        except Exception:
            logger.exception("Expiry sweep failed")
            if args.once:
                return 1
        if args.once:
            return 0
        time.sleep(interval)


if __name__ == "__main__":
    raise SystemExit(main())
