"""게시글 변경 이력 응답 계약을 위한 Pydantic 스키마입니다."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from blogdesk.schemas.user import UserBrief


class PostHistoryOut(BaseModel):
    history_id: int
    post_id: int
    title: str
    description: str
    content: str
    images: List[Dict[str, Any]]
    changed_by: Optional[UserBrief] = None
    changed_at: datetime
    change_type: str
