from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.common_schemas import CamelModel


class CategoryCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    allow_types: List[str]


class CategoryUpdate(CategoryCreate):
    category_id: int


class CategoryDelete(CamelModel):
    category_id: int


class CategoryOut(CamelModel):
    id: int
    name: str
    allow_types: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
