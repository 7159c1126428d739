"""
api/routes/search.py
--------------------
GET /search?query=  — accent- and case-insensitive property search.
"""

from fastapi import APIRouter, Query

from estate_crm.dependencies import DbSession, TenantUser
from estate_crm.schemas.property import PropertyRead, PropertySearchResult
from estate_crm.services.search_service import SearchService

router = APIRouter(prefix="/search", tags=["Search"])


@router.get("", response_model=PropertySearchResult)
async def search(
    identity: TenantUser,
    db: DbSession,
    query: str = Query(default="", max_length=200),
) -> PropertySearchResult:
    result = await SearchService.search(db, identity, query)
    return PropertySearchResult(
        query=result["query"],
        properties=[PropertyRead.model_validate(prop) for prop in result["properties"]],
        total=result["total"],
    )
