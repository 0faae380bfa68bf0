"""게시글 변경 이력(스냅샷)을 저장하는 SQLAlchemy 모델 정의입니다."""

from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index

from blogdesk.database import Base

CHANGE_TYPES = ("created", "updated")


def _utcnow() -> datetime:
    return datetime.utcnow()


class PostHistory(Base):
    __tablename__ = "post_history"

    history_id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("post.post_id"), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(String(500), nullable=False, default="")
    content = Column(Text, nullable=False, default="")
    images = Column(Text, nullable=False, default="[]")  # JSON string
    changed_by = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    # append 시점에 마이크로초 단위로 기록 (server_default는 초 단위라 정렬이 불안정)
    changed_at = Column(DateTime, nullable=False, default=_utcnow)
    change_type = Column(String(20), nullable=False)  # created/updated

    __table_args__ = (
        Index("idx_post_history_post", "post_id", "changed_at"),
    )
