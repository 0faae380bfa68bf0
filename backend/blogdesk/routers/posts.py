"""Posts 기능 API 라우터입니다. 요청을 검증하고 서비스 레이어로 비즈니스 로직을 위임합니다."""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional

from blogdesk.config import settings
from blogdesk.database import get_db
from blogdesk.middleware.auth_middleware import require_roles
from blogdesk.schemas.common import ApiResponse, ok
from blogdesk.schemas.history import PostHistoryOut
from blogdesk.schemas.post import (
    ImageBatchOut,
    ImageFailureOut,
    ImageRenameRequest,
    PostCreate,
    PostImageOut,
    PostListOut,
    PostOut,
    PostUpdate,
)
from blogdesk.services import history_service, image_upload_service, post_service
from blogdesk.services.asset_store import CloudinaryAssetStore, get_asset_store
from blogdesk.services.auth_service import Principal
from blogdesk.utils.helpers import read_image_uploads
from blogdesk.utils.permissions import ADMIN, POST_WRITER_ROLES

router = APIRouter(prefix="/api/posts", tags=["posts"])

require_writer = require_roles(*POST_WRITER_ROLES)


@router.get("", response_model=ApiResponse[PostListOut])
def list_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=100),
    db: Session = Depends(get_db),
):
    result = post_service.list_posts(db, page=page, limit=limit, status=status, search=search)
    result["posts"] = [PostOut.model_validate(post) for post in result["posts"]]
    return ok(PostListOut(**result))


@router.get("/{post_id}", response_model=ApiResponse[PostOut])
def get_post(post_id: int, db: Session = Depends(get_db)):
    return ok(PostOut.model_validate(post_service.get_post(db, post_id)))


@router.get("/{post_id}/history", response_model=ApiResponse[List[PostHistoryOut]])
def get_post_history(post_id: int, db: Session = Depends(get_db)):
    post_service.get_post(db, post_id)
    return ok(history_service.list_history_with_actors(db, post_id))


@router.post("", response_model=ApiResponse[PostOut], status_code=status.HTTP_201_CREATED)
def create_post(
    data: PostCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_writer),
):
    post = post_service.create_post(db, principal, data)
    return ok(PostOut.model_validate(post), "게시글이 생성되었습니다.")


@router.put("/{post_id}", response_model=ApiResponse[PostOut])
def update_post(
    post_id: int,
    data: PostUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_writer),
):
    post = post_service.update_post(db, post_id, principal, data)
    return ok(PostOut.model_validate(post), "게시글이 수정되었습니다.")


@router.delete("/{post_id}", response_model=ApiResponse[None])
async def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_roles(ADMIN)),
    asset_store: CloudinaryAssetStore = Depends(get_asset_store),
):
    await post_service.delete_post(db, post_id, principal, asset_store)
    return ok(message="게시글이 삭제되었습니다.")


@router.post("/{post_id}/images", response_model=ApiResponse[ImageBatchOut])
async def upload_images(
    post_id: int,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_writer),
    asset_store: CloudinaryAssetStore = Depends(get_asset_store),
):
    items = await read_image_uploads(request)
    batch = await image_upload_service.upload_post_images(
        db,
        post_id,
        principal,
        items,
        asset_store,
        concurrency=settings.IMAGE_UPLOAD_CONCURRENCY,
    )
    data = ImageBatchOut(
        images=[PostImageOut.model_validate(image) for image in batch.images],
        uploaded_count=len(batch.images),
        failed_count=len(batch.failures),
        total_count=batch.total,
        failures=[ImageFailureOut(index=f.index, name=f.name, reason=f.reason) for f in batch.failures],
    )
    # 전부 실패해도 오류가 아닌 soft failure로 응답한다.
    return {"success": batch.success, "data": data, "message": batch.message}


@router.put("/{post_id}/images/{image_id}", response_model=ApiResponse[PostImageOut])
def rename_image(
    post_id: int,
    image_id: int,
    data: ImageRenameRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_writer),
):
    image = post_service.rename_image(db, post_id, image_id, principal, data.name)
    return ok(PostImageOut.model_validate(image), "이미지 이름이 변경되었습니다.")


@router.delete("/{post_id}/images/{image_id}", response_model=ApiResponse[PostOut])
async def delete_image(
    post_id: int,
    image_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_writer),
    asset_store: CloudinaryAssetStore = Depends(get_asset_store),
):
    post = await post_service.remove_image(db, post_id, image_id, principal, asset_store)
    return ok(PostOut.model_validate(post), "이미지가 삭제되었습니다.")
