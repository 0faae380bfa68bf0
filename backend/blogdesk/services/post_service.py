"""Post Service 도메인 서비스 레이어입니다. 게시글 변경과 이력 기록 흐름을 캡슐화합니다."""

import logging
import math
from typing import List

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload, selectinload

from blogdesk.models.post import POST_STATUSES, Post, PostImage
from blogdesk.schemas.post import PostCreate, PostUpdate
from blogdesk.services import history_service
from blogdesk.services.asset_store import CloudinaryAssetStore, DeleteOutcome
from blogdesk.services.auth_service import Principal
from blogdesk.utils.errors import NotFoundError, ValidationError
from blogdesk.utils.permissions import (
    can_create_post,
    can_delete_post,
    can_edit_post,
    can_manage_post_images,
    can_set_post_status,
    ensure,
)

logger = logging.getLogger(__name__)


def _posts_query(db: Session):
    return db.query(Post).options(joinedload(Post.author), selectinload(Post.images))


def get_post(db: Session, post_id: int) -> Post:
    post = _posts_query(db).filter(Post.post_id == post_id).first()
    if not post:
        raise NotFoundError("게시글을 찾을 수 없습니다.")
    return post


def list_posts(
    db: Session,
    page: int = 1,
    limit: int = 10,
    status: str | None = None,
    search: str | None = None,
) -> dict:
    query = db.query(Post)
    if status:
        if status not in POST_STATUSES:
            raise ValidationError("유효하지 않은 게시글 상태입니다.")
        query = query.filter(Post.status == status)
    if search and search.strip():
        keyword = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Post.title.ilike(keyword),
                Post.description.ilike(keyword),
                Post.content.ilike(keyword),
            )
        )
    total = query.count()
    posts = (
        query.options(joinedload(Post.author), selectinload(Post.images))
        .order_by(Post.created_at.desc(), Post.post_id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "posts": posts,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }


def _author_role(post: Post) -> str | None:
    return post.author.role if post.author is not None else None


def ensure_can_edit(post: Post, principal: Principal):
    ensure(
        can_edit_post(principal.user_id, principal.role, post.author_id, _author_role(post)),
        "본인 게시글 또는 관리자만 수정 가능합니다.",
    )


def ensure_can_manage_images(post: Post, principal: Principal):
    ensure(
        can_manage_post_images(principal.user_id, principal.role, post.author_id),
        "본인 게시글 또는 관리자만 이미지를 관리할 수 있습니다.",
    )


def create_post(db: Session, principal: Principal, data: PostCreate) -> Post:
    ensure(can_create_post(principal.role), "게시글 작성 권한이 없습니다.")
    post = Post(
        title=data.title,
        description=data.description,
        content=data.content,
        author_id=principal.user_id,
        status="draft",
    )
    db.add(post)
    db.flush()
    history_service.append_history(db, post=post, changed_by=principal.user_id, change_type="created")
    db.commit()
    return get_post(db, post.post_id)


def update_post(db: Session, post_id: int, principal: Principal, data: PostUpdate) -> Post:
    post = get_post(db, post_id)
    ensure_can_edit(post, principal)

    payload = data.model_dump(exclude_unset=True, exclude_none=True)
    next_status = payload.pop("status", None)
    for key, value in payload.items():
        setattr(post, key, value)
    if next_status is not None and can_set_post_status(principal.role):
        post.status = next_status

    history_service.append_history(db, post=post, changed_by=principal.user_id, change_type="updated")
    db.commit()
    return get_post(db, post.post_id)


def find_image(post: Post, image_id: int) -> PostImage:
    for image in post.images:
        if image.image_id == image_id:
            return image
    raise NotFoundError("이미지를 찾을 수 없습니다.")


def next_image_position(post: Post) -> int:
    return max((image.position for image in post.images), default=-1) + 1


def rename_image(db: Session, post_id: int, image_id: int, principal: Principal, name: str) -> PostImage:
    next_name = (name or "").strip()
    if not next_name:
        raise ValidationError("이미지 이름은 비워둘 수 없습니다.")
    post = get_post(db, post_id)
    ensure_can_manage_images(post, principal)
    image = find_image(post, image_id)
    image.name = next_name
    history_service.append_history(db, post=post, changed_by=principal.user_id, change_type="updated")
    db.commit()
    db.refresh(image)
    return image


def _load_image_target(db: Session, post_id: int, image_id: int, principal: Principal) -> tuple[Post, PostImage]:
    post = get_post(db, post_id)
    ensure_can_manage_images(post, principal)
    return post, find_image(post, image_id)


def _detach_image(db: Session, post: Post, image: PostImage, principal: Principal) -> Post:
    post.images.remove(image)
    history_service.append_history(db, post=post, changed_by=principal.user_id, change_type="updated")
    db.commit()
    return get_post(db, post.post_id)


async def remove_image(
    db: Session,
    post_id: int,
    image_id: int,
    principal: Principal,
    asset_store: CloudinaryAssetStore,
) -> Post:
    post, image = await run_in_threadpool(_load_image_target, db, post_id, image_id, principal)

    outcome = await asset_store.delete_by_id(image.public_id)
    if not outcome.deleted:
        logger.warning(
            "[posts] remote image %s of post %s was not deleted: %s",
            image.public_id,
            post_id,
            outcome.error,
        )

    return await run_in_threadpool(_detach_image, db, post, image, principal)


def _load_post_for_delete(db: Session, post_id: int, principal: Principal) -> Post:
    post = get_post(db, post_id)
    ensure(can_delete_post(principal.role), "게시글 삭제는 관리자만 가능합니다.")
    return post


def _purge_post(db: Session, post: Post):
    history_service.delete_history_for_post(db, post.post_id)
    db.delete(post)
    db.commit()


async def delete_post(
    db: Session,
    post_id: int,
    principal: Principal,
    asset_store: CloudinaryAssetStore,
) -> List[DeleteOutcome]:
    post = await run_in_threadpool(_load_post_for_delete, db, post_id, principal)

    outcomes = await asset_store.delete_many([image.public_id for image in post.images])
    failed = [outcome.public_id for outcome in outcomes if not outcome.deleted]
    if failed:
        logger.warning("[posts] post %s deleted with %d remote image(s) left: %s", post_id, len(failed), failed)

    await run_in_threadpool(_purge_post, db, post)
    return outcomes
