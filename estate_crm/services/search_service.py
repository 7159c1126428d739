"""
services/search_service.py
--------------------------
Free-text property search for the map search box.

Matching is case- and Romanian-diacritic-insensitive ("Brasov" finds
"Brașov"); results are ordered by normalized name.
"""

from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.core.errors import InvalidArgument
from estate_crm.core.logging import get_logger
from estate_crm.core.tenancy import Identity
from estate_crm.core.text import sort_by_normalized_text
from estate_crm.services.property_service import PropertyService

logger = get_logger(__name__)


class SearchService:

    @staticmethod
    async def search(db: AsyncSession, identity: Identity, query: str) -> Dict[str, Any]:
        term = (query or "").strip()
        if not term:
            raise InvalidArgument("Search query is required")
        properties = sort_by_normalized_text(
            await PropertyService.search_properties(db, identity, term), "name"
        )
        logger.info("Search served", company_id=identity.company_id, matches=len(properties))
        return {"query": term, "properties": properties, "total": len(properties)}
