from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.category_schemas import CategoryOut
from app.schemas.common_schemas import CamelModel


class ThemeCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    categories: List[int]


class ThemeUpdate(ThemeCreate):
    theme_id: int


class ThemeDelete(CamelModel):
    theme_id: int


class ThemeOut(CamelModel):
    id: int
    name: str
    categories: List[int] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ThemeDetailOut(ThemeOut):
    categories: List[CategoryOut] = []


class ThemeSummaryOut(CamelModel):
    id: int
    name: str
