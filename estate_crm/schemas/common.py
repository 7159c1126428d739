"""
schemas/common.py
-----------------
Shared pydantic base classes.

The JSON surface is camelCase (companyId, createdAt, ...). Attribute names
stay snake_case; populate_by_name lets clients send either spelling.
"""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PageRead(CamelModel, Generic[T]):
    items: List[T]
    cursor: Optional[str] = None
    has_more: bool = False


class MessageResponse(CamelModel):
    success: bool = True
    message: str


def page_of(schema, page) -> PageRead:
    """Wrap a repository Page of ORM rows into its response model."""
    return PageRead[schema](
        items=[schema.model_validate(item) for item in page.items],
        cursor=page.cursor,
        has_more=page.has_more,
    )
