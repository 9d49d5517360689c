"""Index this repository and run a few sample queries.

Demonstrates the synchronous CodeVec API: a first pass embeds every
source file, a second pass finds nothing changed, then queries are ranked
against the in-memory index.

Usage:
    uv run python scripts/index_repo.py [--data-dir DIR] [--clear] [query ...]
"""

from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path

from codevec import CodeVec, CodeVecConfig, EventType, IndexEvent

REPO_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = REPO_ROOT / ".codevec"

DEFAULT_QUERIES = [
    "open the sqlite database",
    "split text into chunks",
    "cosine similarity ranking",
]


def _on_file_indexed(event: IndexEvent) -> None:
    print(f"  [{event.files_indexed:>4}] {event.path} ({event.chunk_count} chunks total)")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("queries", nargs="*", default=DEFAULT_QUERIES)
    parser.add_argument("--data-dir", type=Path, default=DATA_DIR)
    parser.add_argument("--clear", action="store_true", help="drop all embeddings first")
    parser.add_argument("-k", "--top-k", type=int, default=5)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    config = CodeVecConfig.from_env(data_dir=args.data_dir)
    print(f"Repo root:  {REPO_ROOT}")
    print(f"Store:      {config.db_path}")
    print()

    with CodeVec(config) as cv:
        if not cv.available:
            print("Embedding store unavailable; nothing to do.")
            return

        if args.clear:
            removed = cv.clear_all_embeddings()
            print(f"Cleared {removed} embeddings\n")

        cv.events.register(EventType.FILE_INDEXED, _on_file_indexed)

        # --------------------------------------------------------------
        # Phase 1: index, then re-index (second pass should be a no-op)
        # --------------------------------------------------------------
        for phase in ("first pass", "second pass"):
            print("=" * 60)
            print(f"INDEX: {phase}")
            print("=" * 60)
            start = time.perf_counter()
            result = cv.index_directory(REPO_ROOT / "src")
            elapsed = time.perf_counter() - start
            print(
                f"  {result.files_seen} seen, {result.files_indexed} indexed, "
                f"{result.files_skipped} unchanged, {result.files_failed} failed, "
                f"{result.chunks_written} chunks, {result.files_pruned} pruned "
                f"in {elapsed:.2f}s\n"
            )

        stats = cv.get_stats()
        print(
            f"Stats: {stats.file_count} files, {stats.chunk_count} chunks, "
            f"{stats.store_size_bytes / 1024:.1f} KB on disk\n"
        )

        # --------------------------------------------------------------
        # Phase 2: queries
        # --------------------------------------------------------------
        for query in args.queries:
            print("=" * 60)
            print(f"QUERY: {query}")
            print("=" * 60)
            for hit in cv.search(query, top_k=args.top_k):
                rel = Path(hit.file_path).relative_to(REPO_ROOT)
                first_line = hit.snippet.strip().splitlines()[0] if hit.snippet.strip() else ""
                print(f"  {hit.score:.3f}  {rel}:{hit.chunk_index}  {first_line[:60]}")
            print()


if __name__ == "__main__":
    main()
