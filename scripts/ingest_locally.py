#!/usr/bin/env python3
"""
Local meter export ingester.

Ingests a folder of grid operator export files (or the files already held in
a local store), prints the per-batch summary and the selected view, and can
upload the files into the local content-addressed store.

Usage:
    uv run scripts/ingest_locally.py <folder or files...> [--meter ID | --all] [--date YYYY-MM-DD]
    uv run scripts/ingest_locally.py --from-storage ./storage --members

Example:
    uv run scripts/ingest_locally.py ./exports --upload --storage-dir ./storage
    uv run scripts/ingest_locally.py ./exports --meter PL0037000000123456 --csv view.csv
"""

import argparse
import sys
import time
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from meterdata import (
    DuplicateContentError,
    IngestResult,
    StorageWriteError,
    ViewKind,
    ViewSelector,
    build_view,
    ingest_paths,
    ingest_stored_files,
    local_store,
    view_totals,
)
from meterdata.models import records_to_frame

EXPORT_SUFFIXES = {".csv", ".txt"}


def collect_files(inputs: list[str]) -> list[Path]:
    """Expand folders into their export files, keeping the given order."""
    files: list[Path] = []
    for item in inputs:
        path = Path(item)
        if path.is_dir():
            files.extend(sorted(p for p in path.iterdir() if p.is_file() and p.suffix.lower() in EXPORT_SUFFIXES))
        else:
            files.append(path)
    return files


def upload_files(files: list[Path], storage_dir: str) -> dict[str, int]:
    """Upload files one at a time, continuing after duplicates and failures."""
    store = local_store(storage_dir)
    stats = {"stored": 0, "duplicates": 0, "failed": 0}

    for idx, path in enumerate(files, 1):
        try:
            stored = store.put(path.read_bytes(), path.name)
            stats["stored"] += 1
            print(f"[{idx}/{len(files)}] ✓ {path.name} -> {stored.relative_path}")
        except DuplicateContentError as e:
            stats["duplicates"] += 1
            print(f"[{idx}/{len(files)}] = {path.name} already stored as {e.existing_path}")
        except (OSError, StorageWriteError) as e:
            stats["failed"] += 1
            print(f"[{idx}/{len(files)}] ✗ {path.name}: {e}")

    return stats


def select_view(args: argparse.Namespace) -> ViewSelector:
    if args.meter:
        return ViewSelector.for_meter(args.meter, date=args.date)
    if args.all:
        return ViewSelector(ViewKind.ALL, date=args.date)
    return ViewSelector(ViewKind.MEMBERS, date=args.date)


def print_summary(result: IngestResult) -> None:
    print("\n" + "=" * 60)
    print("Ingestion Summary")
    print("=" * 60)
    print(f"Records:              {len(result.records):,}")
    print(f"Meters:               {len(result.meter_ids)}")
    print(f"Days:                 {result.summary.days_count}")
    print(f"Total consumption:    {result.summary.total_consumption:.3f} kWh")
    print(f"Total production:     {result.summary.total_production:.3f} kWh")
    print(f"Cooperative id:       {result.summary.cooperative_id or '-'}")
    print(f"Phantom records:      {result.purged_records}")

    if result.errors:
        print(f"\nErrors ({len(result.errors)} total):")
        for error in result.errors[:10]:
            print(f"  - {error}")
        if len(result.errors) > 10:
            print(f"  ... and {len(result.errors) - 10} more")


def main() -> None:
    parser = argparse.ArgumentParser(description="Ingest meter export files locally")
    parser.add_argument("inputs", nargs="*", help="Export files or folders")
    parser.add_argument("--from-storage", metavar="DIR", help="Ingest the files held in a local store")
    parser.add_argument("--meter", help="Show a single meter")
    parser.add_argument("--all", action="store_true", help="Show the legacy whole-cooperative sum")
    parser.add_argument("--date", help="Restrict the view to one day (YYYY-MM-DD)")
    parser.add_argument("--csv", metavar="FILE", help="Write the view to a CSV file")
    parser.add_argument("--upload", action="store_true", help="Upload the files into the local store")
    parser.add_argument("--storage-dir", default="storage", help="Local store directory for --upload")
    args = parser.parse_args()

    if not args.inputs and not args.from_storage:
        parser.error("give export files/folders or --from-storage")

    start = time.time()

    if args.from_storage:
        stored_files = local_store(args.from_storage).list_files()
        print(f"Loaded {len(stored_files)} files from {args.from_storage}")
        result = ingest_stored_files(stored_files)
    else:
        files = collect_files(args.inputs)
        if not files:
            print("Error: No export files found")
            sys.exit(1)

        if args.upload:
            stats = upload_files(files, args.storage_dir)
            print(f"\nStored: {stats['stored']}, duplicates: {stats['duplicates']}, failed: {stats['failed']}")

        def on_progress(count: int) -> None:
            print(f"\rIngested {count}/{len(files)} files", end="", flush=True)

        result = ingest_paths(files, on_progress=on_progress)
        print()

    print_summary(result)

    selector = select_view(args)
    view = build_view(result.records, selector, result.summary.cooperative_id)
    totals = view_totals(view)

    print(f"\nView: {selector.kind.value}" + (f" {selector.meter_id}" if selector.meter_id else ""))
    print(f"Rows:                 {len(view)}")
    print(f"View consumption:     {totals.total_consumption:.3f} kWh")
    print(f"View production:      {totals.total_production:.3f} kWh")

    if args.csv:
        records_to_frame(view).to_csv(args.csv, index=False)
        print(f"View written to {args.csv}")

    print(f"\nCompleted in {time.time() - start:.1f}s")
    print("=" * 60)


if __name__ == "__main__":
    main()
