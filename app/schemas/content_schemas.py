from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.common_schemas import CamelModel
from app.schemas.theme_schemas import ThemeSummaryOut
from app.schemas.user_schemas import UserSummaryOut


class ContentTypeIn(CamelModel):
    id: Optional[int] = None  # set when editing an existing item
    category: int
    data: str = Field(min_length=1)


class ContentCreate(CamelModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    image: str = Field(min_length=1)
    theme: int
    data: List[ContentTypeIn]


class ContentUpdate(ContentCreate):
    content_id: int


class ContentDelete(CamelModel):
    content_id: int


class ContentOut(CamelModel):
    id: int
    title: str
    description: str
    image: str
    creator: int
    theme: int
    content_type: List[int] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ContentTypeCategoryOut(CamelModel):
    id: int
    name: str
    allow_types: List[str] = []


class ContentTypeOut(CamelModel):
    id: int
    content: int
    category: Optional[ContentTypeCategoryOut] = None
    data: str


class ContentDetailOut(CamelModel):
    id: int
    title: str
    description: str
    image: str
    creator: UserSummaryOut
    theme: ThemeSummaryOut
    content_type: List[ContentTypeOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
