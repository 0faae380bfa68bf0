"""Auth 기능 API 라우터입니다. 요청을 검증하고 서비스 레이어로 비즈니스 로직을 위임합니다."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from blogdesk.database import get_db
from blogdesk.schemas.common import ApiResponse, ok
from blogdesk.schemas.user import AuthPayload, LoginRequest, RegisterRequest, UserOut
from blogdesk.services import auth_service
from blogdesk.services.auth_service import TokenService, get_token_service
from blogdesk.middleware.auth_middleware import get_current_user
from blogdesk.models.user import User

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=ApiResponse[AuthPayload], status_code=status.HTTP_201_CREATED)
def register(
    request: RegisterRequest,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    user = auth_service.register(db, request)
    payload = AuthPayload(user=UserOut.model_validate(user), token=tokens.issue(user.user_id))
    return ok(payload, "회원가입이 완료되었습니다.")


@router.post("/login", response_model=ApiResponse[AuthPayload])
def login(
    request: LoginRequest,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    user = auth_service.login(db, request)
    payload = AuthPayload(user=UserOut.model_validate(user), token=tokens.issue(user.user_id))
    return ok(payload, "로그인되었습니다.")


@router.get("/profile", response_model=ApiResponse[UserOut])
def profile(current_user: User = Depends(get_current_user)):
    return ok(UserOut.model_validate(current_user))
