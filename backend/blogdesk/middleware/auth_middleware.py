from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from blogdesk.database import get_db
from blogdesk.models.user import User
from blogdesk.services.auth_service import Principal, TokenService, get_token_service
from blogdesk.utils.errors import AuthenticationError, AuthorizationError

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("토큰이 없습니다. 로그인이 필요합니다.")
    user_id = tokens.verify(credentials.credentials)

    user = db.query(User).filter(User.user_id == user_id, User.is_active == True).first()  # noqa: E712
    if not user:
        raise AuthenticationError("유효하지 않은 토큰입니다.")
    return user


def get_current_principal(request: Request, user: User = Depends(get_current_user)) -> Principal:
    principal = Principal.from_user(user)
    request.state.principal = principal
    return principal


def require_roles(*roles: str):
    def checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in roles:
            raise AuthorizationError(f"Requires role: {', '.join(roles)}")
        return principal
    return checker
