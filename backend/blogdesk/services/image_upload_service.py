"""게시글 이미지 일괄 업로드 오케스트레이션 서비스입니다.

항목별 압축/업로드를 동시에 실행하고(settle-all), 실패한 항목은 건너뛴 뒤
성공한 이미지만 입력 순서대로 게시글에 붙이고 이력을 한 건 기록합니다.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from blogdesk.models.post import MAX_IMAGE_NAME_LENGTH, Post, PostImage
from blogdesk.services import history_service, post_service
from blogdesk.services.asset_store import AssetUploadResult, CloudinaryAssetStore
from blogdesk.services.auth_service import Principal
from blogdesk.utils.errors import ValidationError
from blogdesk.utils.images import strip_extension

logger = logging.getLogger(__name__)


@dataclass
class ImageUploadItem:
    data: bytes
    mime_type: Optional[str] = None
    filename: Optional[str] = None
    supplied_name: Optional[str] = None


@dataclass
class ImageItemFailure:
    index: int
    name: str
    reason: str


@dataclass
class ImageBatchResult:
    images: List[PostImage] = field(default_factory=list)
    failures: List[ImageItemFailure] = field(default_factory=list)
    total: int = 0

    @property
    def success(self) -> bool:
        return bool(self.images)

    @property
    def outcome(self) -> str:
        if not self.images:
            return "failed"
        if self.failures:
            return "partial"
        return "success"

    @property
    def message(self) -> str:
        if self.outcome == "success":
            return f"이미지 {self.total}개를 업로드했습니다."
        if self.outcome == "partial":
            return f"이미지 {self.total}개 중 {len(self.images)}개 업로드, {len(self.failures)}개 실패했습니다."
        return f"이미지 {self.total}개를 모두 업로드하지 못했습니다."


def resolve_image_name(item: ImageUploadItem, index: int) -> str:
    """index는 1부터 시작합니다. 결과는 PostImage.name 길이(200자)를 넘지 않습니다."""
    supplied = (item.supplied_name or "").strip()
    if supplied:
        return supplied[:MAX_IMAGE_NAME_LENGTH].rstrip()
    from_filename = strip_extension(item.filename).strip()
    if from_filename:
        return from_filename[:MAX_IMAGE_NAME_LENGTH].rstrip()
    return f"image_{index}"


async def _upload_one(
    asset_store: CloudinaryAssetStore,
    semaphore: asyncio.Semaphore,
    item: ImageUploadItem,
    name: str,
) -> AssetUploadResult:
    async with semaphore:
        return await asset_store.compress_and_upload(item.data, name, item.mime_type)


def _load_upload_target(db: Session, post_id: int, principal: Principal) -> Post:
    post = post_service.get_post(db, post_id)
    post_service.ensure_can_manage_images(post, principal)
    return post


def _attach_images(db: Session, post: Post, images: List[PostImage], principal: Principal):
    position = post_service.next_image_position(post)
    for image in images:
        image.position = position
        position += 1
        post.images.append(image)
    history_service.append_history(db, post=post, changed_by=principal.user_id, change_type="updated")
    db.commit()
    for image in images:
        db.refresh(image)


async def upload_post_images(
    db: Session,
    post_id: int,
    principal: Principal,
    items: List[ImageUploadItem],
    asset_store: CloudinaryAssetStore,
    concurrency: int = 4,
) -> ImageBatchResult:
    post = await run_in_threadpool(_load_upload_target, db, post_id, principal)
    if not items:
        raise ValidationError("업로드할 이미지가 없습니다.")
    if any(not item.data for item in items):
        raise ValidationError("비어 있는 파일이 포함되어 있습니다. multipart/form-data 형식으로 전송했는지 확인하세요.")

    names = [resolve_image_name(item, index) for index, item in enumerate(items, start=1)]
    semaphore = asyncio.Semaphore(max(1, concurrency))
    results = await asyncio.gather(
        *(_upload_one(asset_store, semaphore, item, name) for item, name in zip(items, names)),
        return_exceptions=True,
    )

    batch = ImageBatchResult(total=len(items))
    for index, (name, result) in enumerate(zip(names, results), start=1):
        if isinstance(result, BaseException):
            logger.warning("[images] post %s item %d (%s) failed: %s", post_id, index, name, result)
            reason = getattr(result, "detail", None) or str(result) or type(result).__name__
            batch.failures.append(ImageItemFailure(index=index, name=name, reason=str(reason)))
            continue
        batch.images.append(
            PostImage(
                name=name,
                url=result.url,
                public_id=result.public_id,
                width=result.width,
                height=result.height,
            )
        )

    if not batch.images:
        logger.warning("[images] post %s: all %d image(s) failed", post_id, batch.total)
        return batch

    uploaded = [image.public_id for image in batch.images]
    try:
        await run_in_threadpool(_attach_images, db, post, batch.images, principal)
    except SQLAlchemyError:
        await run_in_threadpool(db.rollback)
        logger.error("[images] post %s: failed to persist batch, removing %d uploaded asset(s)", post_id, len(uploaded))
        await asset_store.delete_many(uploaded)
        raise
    return batch
