"""User Service 도메인 서비스 레이어입니다. 비즈니스 규칙과 데이터 접근 흐름을 캡슐화합니다."""

from sqlalchemy.orm import Session

from blogdesk.models.user import User
from blogdesk.schemas.user import PasswordChangeRequest, UserCreate, UserUpdate
from blogdesk.services.auth_service import Principal, ensure_unique_identity, hash_password, verify_password
from blogdesk.utils.errors import NotFoundError, ValidationError
from blogdesk.utils.permissions import (
    can_change_password,
    can_change_role,
    can_delete_user,
    can_manage_users,
    ensure,
)


def _ensure_admin(principal: Principal):
    ensure(can_manage_users(principal.role), "관리자만 사용자를 관리할 수 있습니다.")


def list_users(db: Session, principal: Principal):
    _ensure_admin(principal)
    return (
        db.query(User)
        .filter(User.is_active == True)  # noqa: E712
        .order_by(User.created_at.desc(), User.user_id.desc())
        .all()
    )


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.user_id == user_id, User.is_active == True).first()  # noqa: E712
    if not user:
        raise NotFoundError("사용자를 찾을 수 없습니다.")
    return user


def create_user(db: Session, data: UserCreate, principal: Principal) -> User:
    _ensure_admin(principal)
    username = data.username.strip()
    email = data.email.strip().lower()
    ensure_unique_identity(db, username, email)

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(data.password),
        role=data.role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def update_user(db: Session, user_id: int, data: UserUpdate, principal: Principal) -> User:
    _ensure_admin(principal)
    user = get_user(db, user_id)

    payload = data.model_dump(exclude_unset=True, exclude_none=True)
    ensure(
        can_change_role(principal.user_id, user.user_id, user.role, payload.get("role")),
        "본인의 역할은 변경할 수 없습니다.",
    )

    if "username" in payload:
        payload["username"] = payload["username"].strip()
        if not payload["username"]:
            raise ValidationError("사용자명은 비워둘 수 없습니다.")
    if "email" in payload:
        payload["email"] = payload["email"].strip().lower()
    if "username" in payload or "email" in payload:
        ensure_unique_identity(
            db,
            payload.get("username", user.username),
            payload.get("email", user.email),
            exclude_user_id=user.user_id,
        )

    for key, value in payload.items():
        setattr(user, key, value)
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user_id: int, principal: Principal):
    _ensure_admin(principal)
    ensure(principal.user_id != user_id, "본인 계정은 삭제할 수 없습니다.")
    user = get_user(db, user_id)
    ensure(can_delete_user(principal.user_id, user.user_id, user.role), "관리자 계정은 삭제할 수 없습니다.")

    # 작성 게시글/이력의 작성자 참조를 유지하기 위해 비활성화로 삭제한다.
    user.is_active = False
    db.commit()


def change_password(db: Session, principal: Principal, target_user_id: int, data: PasswordChangeRequest):
    ensure(can_change_password(principal.user_id, target_user_id), "본인 비밀번호만 변경할 수 있습니다.")
    user = get_user(db, target_user_id)
    if not verify_password(data.current_password, user.password_hash):
        raise ValidationError("현재 비밀번호가 올바르지 않습니다.")
    user.password_hash = hash_password(data.new_password)
    db.commit()
