#!/usr/bin/env python3
"""
Rebuild the OpenSearch users/hashtags/posts indexes from the social database.

Safe to run at any time: every document is deleted and re-created from its
primary row, and a failing row is logged and counted without stopping the run.

Reads the same settings as the API (.env / environment):
    SOCIAL_DATABASE_URL, OPENSEARCH_URL, OPENSEARCH_ENABLED, OPENSEARCH_INDEX_PREFIX, ...

Usage:
    cd social-backend
    python -m scripts.reindex_search [--batch-size 500]

Exit code is 1 when any document failed to index.
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Add backend root to path so imports resolve
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "services" / "social"))
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "shared"))

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.config import Settings
from app.search.indexer import SearchIndexer
from app.search.opensearch import open_client
from app.search.reindex import reindex_all
from shared.database.postgres import get_async_engine
from shared.logging_setup import configure_logging


async def main(batch_size: int | None) -> int:
    settings = Settings()
    configure_logging(settings.log_level)

    client = await open_client(settings)
    if client is None:
        print("Error: OpenSearch is disabled or unreachable (check OPENSEARCH_ENABLED / OPENSEARCH_URL).")
        return 1

    engine = get_async_engine(settings.social_database_url)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    indexer = SearchIndexer(client, settings.opensearch_index_prefix)
    try:
        report = await reindex_all(
            session_factory, indexer, batch_size or settings.search_reindex_batch_size
        )
    finally:
        await client.close()
        await engine.dispose()

    for name, counts in report.as_dict().items():
        print(f"{name:<9} ok={counts['succeeded']:<7} failed={counts['failed']}")
    return 1 if report.failed else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--batch-size", type=int, default=None, help="Rows per database batch.")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.batch_size)))
