"""Users 기능 API 라우터입니다. 요청을 검증하고 서비스 레이어로 비즈니스 로직을 위임합니다."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from blogdesk.database import get_db
from blogdesk.middleware.auth_middleware import get_current_principal, require_roles
from blogdesk.schemas.common import ApiResponse, ok
from blogdesk.schemas.user import PasswordChangeRequest, UserCreate, UserOut, UserUpdate
from blogdesk.services import user_service
from blogdesk.services.auth_service import Principal
from blogdesk.utils.permissions import ADMIN

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=ApiResponse[List[UserOut]])
def list_users(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_roles(ADMIN)),
):
    users = user_service.list_users(db, principal)
    return ok([UserOut.model_validate(user) for user in users])


@router.post("", response_model=ApiResponse[UserOut], status_code=status.HTTP_201_CREATED)
def create_user(
    data: UserCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_roles(ADMIN)),
):
    user = user_service.create_user(db, data, principal)
    return ok(UserOut.model_validate(user), "사용자가 생성되었습니다.")


@router.post("/change-password", response_model=ApiResponse[None])
def change_password(
    data: PasswordChangeRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    user_service.change_password(db, principal, principal.user_id, data)
    return ok(message="비밀번호가 변경되었습니다.")


@router.get("/{user_id}", response_model=ApiResponse[UserOut])
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    _principal: Principal = Depends(require_roles(ADMIN)),
):
    return ok(UserOut.model_validate(user_service.get_user(db, user_id)))


@router.put("/{user_id}", response_model=ApiResponse[UserOut])
def update_user(
    user_id: int,
    data: UserUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_roles(ADMIN)),
):
    user = user_service.update_user(db, user_id, data, principal)
    return ok(UserOut.model_validate(user), "사용자 정보가 수정되었습니다.")


@router.delete("/{user_id}", response_model=ApiResponse[None])
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_roles(ADMIN)),
):
    user_service.delete_user(db, user_id, principal)
    return ok(message="사용자가 삭제되었습니다.")
