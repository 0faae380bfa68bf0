"""Permissions 관련 공용 유틸리티 헬퍼입니다.

모든 판정 함수는 (행위자 역할/ID, 대상 소유자 ID/역할)만 받아 bool을 반환하는 순수 함수입니다.
"""

from blogdesk.utils.errors import AuthorizationError


ADMIN = "admin"
EMPLOYEE = "employee"

ALL_ROLES = (ADMIN, EMPLOYEE)
POST_WRITER_ROLES = (ADMIN, EMPLOYEE)


def is_admin(role: str) -> bool:
    return role == ADMIN


def can_create_post(role: str) -> bool:
    return role in POST_WRITER_ROLES


def can_edit_post(actor_id: int, actor_role: str, author_id: int, author_role: str | None) -> bool:
    if is_admin(actor_role):
        return True
    if actor_id != author_id:
        return False
    # 관리자가 작성자인 게시글은 직원이 수정할 수 없다.
    return author_role != ADMIN


def can_set_post_status(role: str) -> bool:
    return is_admin(role)


def can_delete_post(role: str) -> bool:
    return is_admin(role)


def can_manage_post_images(actor_id: int, actor_role: str, author_id: int) -> bool:
    return is_admin(actor_role) or actor_id == author_id


def can_manage_users(role: str) -> bool:
    return is_admin(role)


def can_change_password(actor_id: int, target_id: int) -> bool:
    return actor_id == target_id


def can_delete_user(actor_id: int, target_id: int, target_role: str) -> bool:
    if actor_id == target_id:
        return False
    return target_role != ADMIN


def can_change_role(actor_id: int, target_id: int, current_role: str, requested_role: str | None) -> bool:
    if requested_role is None or requested_role == current_role:
        return True
    return actor_id != target_id


def ensure(allowed: bool, detail: str = "접근 권한이 없습니다.") -> None:
    if not allowed:
        raise AuthorizationError(detail)
