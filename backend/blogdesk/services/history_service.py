"""게시글 변경 이력(History Ledger) 저장/조회 기능을 제공하는 도메인 서비스입니다."""

import json
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from blogdesk.models.post import Post
from blogdesk.models.post_history import CHANGE_TYPES, PostHistory
from blogdesk.models.user import User


def image_snapshot(post: Post) -> List[Dict[str, Any]]:
    return [
        {
            "image_id": image.image_id,
            "name": image.name,
            "url": image.url,
            "public_id": image.public_id,
            "width": image.width,
            "height": image.height,
        }
        for image in post.images
    ]


def append_history(db: Session, *, post: Post, changed_by: int, change_type: str) -> PostHistory:
    """변경 직후의 게시글 전체 상태를 스냅샷으로 추가합니다.

    커밋은 호출자가 게시글 변경과 함께 한 번에 수행합니다. 이미지 ID를 스냅샷에 담기 위해 flush 합니다.
    """
    if change_type not in CHANGE_TYPES:
        raise ValueError(f"unknown change_type: {change_type}")
    db.flush()
    row = PostHistory(
        post_id=post.post_id,
        title=post.title,
        description=post.description or "",
        content=post.content or "",
        images=json.dumps(image_snapshot(post), ensure_ascii=False),
        changed_by=changed_by,
        change_type=change_type,
    )
    db.add(row)
    return row


def list_history(db: Session, post_id: int) -> List[PostHistory]:
    return (
        db.query(PostHistory)
        .filter(PostHistory.post_id == post_id)
        .order_by(PostHistory.changed_at.desc(), PostHistory.history_id.desc())
        .all()
    )


def count_history(db: Session, post_id: int) -> int:
    return db.query(PostHistory).filter(PostHistory.post_id == post_id).count()


def delete_history_for_post(db: Session, post_id: int) -> int:
    return (
        db.query(PostHistory)
        .filter(PostHistory.post_id == post_id)
        .delete(synchronize_session=False)
    )


def parse_images(row: PostHistory) -> List[Dict[str, Any]]:
    try:
        return json.loads(row.images or "[]")
    except json.JSONDecodeError:
        return []


def _actor_brief(user: User | None) -> Dict[str, Any] | None:
    if user is None:
        return None
    return {"user_id": user.user_id, "username": user.username, "email": user.email}


def to_response(row: PostHistory, changed_by: User | None = None) -> Dict[str, Any]:
    return {
        "history_id": row.history_id,
        "post_id": row.post_id,
        "title": row.title,
        "description": row.description,
        "content": row.content,
        "images": parse_images(row),
        "changed_by": _actor_brief(changed_by),
        "changed_at": row.changed_at,
        "change_type": row.change_type,
    }


def list_history_with_actors(db: Session, post_id: int) -> List[Dict[str, Any]]:
    rows = list_history(db, post_id)
    actor_ids = {row.changed_by for row in rows}
    actors = {
        user.user_id: user
        for user in db.query(User).filter(User.user_id.in_(actor_ids)).all()
    } if actor_ids else {}
    return [to_response(row, actors.get(row.changed_by)) for row in rows]
