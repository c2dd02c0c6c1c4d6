#!/usr/bin/env python3
"""
Basic usage examples for B2 Uploader.

This script demonstrates the most common operations:
- Listing buckets
- Uploading a directory tree
- Re-running to see already uploaded files skipped
- Error handling
"""

import sys
import tempfile
from pathlib import Path

from b2_uploader import (
    AuthenticationError,
    B2UploaderAPI,
    B2UploaderError,
    BucketNotFoundError,
    UploaderConfig,
)


def create_sample_tree(root: Path) -> None:
    (root / "reports").mkdir(parents=True, exist_ok=True)
    (root / "README.md").write_text("# Sample upload\n")
    (root / "reports" / "2024.csv").write_text("month,total\n01,42\n")
    (root / "reports" / "2025.csv").write_text("month,total\n01,57\n")


def main():
    """Demonstrate basic B2 Uploader operations."""

    # Requires B2_ACCOUNT_ID and B2_APPLICATION_KEY environment variables
    config = UploaderConfig.from_env(recursive=True, concurrency=4, retry_delay=5)
    api = B2UploaderAPI(config)

    print("\n1. Listing buckets...")
    try:
        for bucket in api.list_buckets():
            print(f"   • {bucket.bucket_name} ({bucket.bucket_id})")
    except AuthenticationError:
        print("   ❌ Authentication failed. Check B2_ACCOUNT_ID and B2_APPLICATION_KEY")
        return 1
    except B2UploaderError as e:
        print(f"   ❌ Error listing buckets: {e}")
        return 1

    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        create_sample_tree(root)

        print("\n2. Uploading a directory...")
        try:
            session_ctx = api.open_session()
        except BucketNotFoundError as e:
            print(f"   ❌ {e}")
            return 1

        def upload_progress(current, total, outcome):
            print(f"   [{current}/{total}] {outcome.status.value:8} {outcome.remote_name}")

        summary = api.upload_directory(
            root, progress_callback=upload_progress, session_ctx=session_ctx
        )
        print(f"   ✅ {summary.uploaded} uploaded, {summary.skipped} skipped, {summary.failed} failed")

        print("\n3. Uploading again (unchanged files are skipped)...")
        summary = api.upload_directory(root, session_ctx=session_ctx)
        print(f"   ✅ {summary.uploaded} uploaded, {summary.skipped} skipped, {summary.failed} failed")

        for outcome in summary.failed_outcomes:
            print(f"   ❌ {outcome.path}: {outcome.last_error}")

    return 0 if summary.ok else 1


if __name__ == "__main__":
    sys.exit(main())
