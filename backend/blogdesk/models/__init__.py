"""SQLAlchemy 모델 패키지 초기화 모듈입니다."""

from blogdesk.models.user import User
from blogdesk.models.post import Post, PostImage
from blogdesk.models.post_history import PostHistory

__all__ = [
    "User",
    "Post", "PostImage",
    "PostHistory",
]
