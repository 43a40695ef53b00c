"""Generate thesis/bio embeddings for every contact that is missing one.

Usage (from repository root):
    python backend/scripts/batch_generate_embeddings.py --profile-id <profile>
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

# Make `app` imports work whether the script is run from repo root or backend/.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from app.db.session import SessionLocal
from app.services.contact_embeddings import DEFAULT_BATCH_SIZE, embed_contacts_batch


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Batch-generate contact embeddings.")
    parser.add_argument("--profile-id", default=None, help="Only embed contacts owned by this profile.")
    parser.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE)
    parser.add_argument(
        "--pause-seconds",
        type=float,
        default=1.0,
        help="Delay between batches to stay under provider rate limits.",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    total_processed = 0
    failed_ids: set[str] = set()
    batch_number = 1

    with SessionLocal() as db:
        while True:
            print(f"Processing batch {batch_number}...")
            result = embed_contacts_batch(
                db,
                profile_id=args.profile_id,
                limit=args.batch_size,
                exclude_ids=failed_ids,
            )
            total_processed += result.processed
            failed_ids.update(result.failed_contact_ids)
            print(f"  processed {result.processed} contacts ({result.total} needed embeddings)")
            for error in result.errors[:5]:
                print(f"  error: {error}")
            if len(result.errors) > 5:
                print(f"  ... and {len(result.errors) - 5} more errors")

            if not result.has_more:
                break
            if result.processed == 0 and not result.failed_contact_ids:
                break
            batch_number += 1
            time.sleep(args.pause_seconds)

    print(f"Complete. Processed {total_processed} contacts total, {len(failed_ids)} failed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
