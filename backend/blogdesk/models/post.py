"""Post 도메인의 SQLAlchemy 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from blogdesk.database import Base

POST_STATUSES = ("draft", "published")
MAX_IMAGE_NAME_LENGTH = 200


class Post(Base):
    __tablename__ = "post"

    post_id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    description = Column(String(500), nullable=False, default="")
    content = Column(Text, nullable=False, default="")
    author_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    status = Column(String(20), nullable=False, default="draft")  # draft/published
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    author = relationship("User", back_populates="posts")
    images = relationship(
        "PostImage",
        back_populates="post",
        order_by="PostImage.position",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_post_status_created", "status", "created_at"),
    )


class PostImage(Base):
    __tablename__ = "post_image"

    image_id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("post.post_id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(MAX_IMAGE_NAME_LENGTH), nullable=False)
    url = Column(String(500), nullable=False)
    public_id = Column(String(300), nullable=False)
    width = Column(Integer, nullable=False)
    height = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    post = relationship("Post", back_populates="images")

    __table_args__ = (
        Index("idx_post_image_post", "post_id", "position"),
    )
