from enum import Enum
from typing import Generic, Optional, TypeVar, Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Snake case in Python, camelCase on the wire (allowTypes, contentId, ...)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(BaseModel, Generic[T]):
    message: str
    object: Optional[T] = None


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class SortSpec(CamelModel):
    field: Optional[str] = None
    order: Optional[SortOrder] = None


class FieldFilter(CamelModel):
    name: Optional[str] = None
    value: Optional[Any] = None


class ListFilters(CamelModel):
    search: Optional[str] = None
    field: Optional[FieldFilter] = None
    sort: Optional[SortSpec] = None


class ListRequest(CamelModel):
    filters: Optional[ListFilters] = None


class GetByIdRequest(CamelModel):
    id: int
