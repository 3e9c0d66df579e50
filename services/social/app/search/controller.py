"""Search controller — orchestration layer between router and service."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.search import service
from app.search.schemas import SearchKind, SearchResponse


async def search(
    db: AsyncSession,
    os_client,
    index_prefix: str,
    kind: SearchKind,
    query: str,
    limit: int = 20,
    offset: int = 0,
) -> SearchResponse:
    items, backend = await service.search(
        db=db,
        os_client=os_client,
        index_prefix=index_prefix,
        kind=kind,
        query=query.strip(),
        limit=limit,
        offset=offset,
    )
    return SearchResponse(
        type=kind,
        query=query,
        items=items,
        limit=limit,
        offset=offset,
        backend=backend,
    )
