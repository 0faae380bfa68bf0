"""Auth Service 도메인 서비스 레이어입니다. 비밀번호 검증, 토큰 발급/검증, 회원가입/로그인을 담당합니다."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from jose import JWTError, jwt
from sqlalchemy import or_
from sqlalchemy.orm import Session

from blogdesk.config import Settings, settings
from blogdesk.models.user import User
from blogdesk.schemas.user import LoginRequest, RegisterRequest
from blogdesk.utils.errors import AuthenticationError, ValidationError
from blogdesk.utils.permissions import EMPLOYEE

ALGORITHM = "HS256"

ph = PasswordHasher()


def hash_password(password: str) -> str:
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


class TokenService:
    def __init__(self, config: Settings):
        self.secret_key = config.SECRET_KEY
        self.expire_minutes = config.ACCESS_TOKEN_EXPIRE_MINUTES

    def issue(self, user_id: int) -> str:
        expire = datetime.utcnow() + timedelta(minutes=self.expire_minutes)
        payload = {"sub": str(user_id), "exp": expire}
        return jwt.encode(payload, self.secret_key, algorithm=ALGORITHM)

    def verify(self, token: str) -> int:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[ALGORITHM])
        except JWTError:
            raise AuthenticationError("유효하지 않거나 만료된 토큰입니다.")
        subject = payload.get("sub")
        try:
            return int(subject)
        except (TypeError, ValueError):
            raise AuthenticationError("토큰 정보가 올바르지 않습니다.")


token_service = TokenService(settings)


def get_token_service() -> TokenService:
    return token_service


def ensure_unique_identity(db: Session, username: str, email: str, exclude_user_id: int | None = None):
    query = db.query(User).filter(or_(User.username == username, User.email == email))
    if exclude_user_id is not None:
        query = query.filter(User.user_id != exclude_user_id)
    if query.first():
        raise ValidationError("이미 사용 중인 사용자명 또는 이메일입니다.")


def register(db: Session, data: RegisterRequest) -> User:
    username = data.username.strip()
    email = data.email.strip().lower()
    ensure_unique_identity(db, username, email)
    user = User(
        username=username,
        email=email,
        password_hash=hash_password(data.password),
        role=EMPLOYEE,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def login(db: Session, data: LoginRequest) -> User:
    user = db.query(User).filter(User.email == data.email.strip().lower()).first()
    if not user or not user.is_active or not verify_password(data.password, user.password_hash):
        raise AuthenticationError("이메일 또는 비밀번호가 올바르지 않습니다.")
    return user


@dataclass(frozen=True)
class Principal:
    """인증 단계에서 확정된 요청 주체 (ID/역할)."""

    user_id: int
    username: str
    role: str

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(user_id=int(user.user_id), username=user.username, role=user.role)
