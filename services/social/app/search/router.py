"""Search router.

Endpoints:
  GET /search?q=&type=users|posts|hashtags   Fuzzy search over one index
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.database import get_db
from app.dependencies import get_opensearch, get_settings
from app.search import controller
from app.search.schemas import SearchKind, SearchResponse

router = APIRouter(prefix="/search", tags=["Search"])


@router.get(
    "",
    response_model=SearchResponse,
    summary="Search users, posts or hashtags",
    description=(
        "Multi-field fuzzy match against the selected OpenSearch index. "
        "Falls back to a Postgres substring match when OpenSearch is off. "
        "No auth required."
    ),
)
async def search(
    q: str = Query(..., min_length=1, max_length=200, description="Search query."),
    type: SearchKind = Query(SearchKind.POSTS, description="Which index to search."),
    limit: int = Query(20, ge=1, le=100, description="Page size."),
    offset: int = Query(0, ge=0, description="Pagination offset."),
    db: AsyncSession = Depends(get_db),
    os_client=Depends(get_opensearch),
    settings: Settings = Depends(get_settings),
) -> SearchResponse:
    return await controller.search(
        db=db,
        os_client=os_client,
        index_prefix=settings.opensearch_index_prefix,
        kind=type,
        query=q,
        limit=limit,
        offset=offset,
    )
