"""Post 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from pydantic import BaseModel, Field, field_validator
from typing import List, Literal, Optional
from datetime import datetime

from blogdesk.models.post import MAX_IMAGE_NAME_LENGTH
from blogdesk.schemas.user import UserBrief

PostStatus = Literal["draft", "published"]


class PostImageOut(BaseModel):
    image_id: int
    name: str
    url: str
    public_id: str
    width: int
    height: int

    model_config = {"from_attributes": True}


class PostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=500)
    content: str = ""

    @field_validator("title", "description")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        if not value:
            raise ValueError("제목은 비워둘 수 없습니다.")
        return value


class PostUpdate(BaseModel):
    """부분 수정 요청. 요청 본문에 없거나 null인 필드는 변경하지 않습니다."""

    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    content: Optional[str] = None
    status: Optional[PostStatus] = None

    @field_validator("title", "description")
    @classmethod
    def _strip(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value:
            raise ValueError("제목은 비워둘 수 없습니다.")
        return value


class PostOut(BaseModel):
    post_id: int
    title: str
    description: str
    content: str
    status: str
    images: List[PostImageOut] = []
    author: Optional[UserBrief] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PostListOut(BaseModel):
    posts: List[PostOut]
    total: int
    page: int
    limit: int
    total_pages: int


class ImageRenameRequest(BaseModel):
    name: str = Field(..., max_length=MAX_IMAGE_NAME_LENGTH)


class ImageFailureOut(BaseModel):
    index: int
    name: str
    reason: str


class ImageBatchOut(BaseModel):
    images: List[PostImageOut]
    uploaded_count: int
    failed_count: int
    total_count: int
    failures: List[ImageFailureOut] = []
