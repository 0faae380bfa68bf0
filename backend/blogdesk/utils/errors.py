"""서비스 레이어에서 사용하는 오류 분류(HTTPException 하위 타입)입니다."""

from fastapi import HTTPException, status


class ValidationError(HTTPException):
    def __init__(self, detail: str = "잘못된 요청입니다."):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "인증이 필요합니다."):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "접근 권한이 없습니다."):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "대상을 찾을 수 없습니다."):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class UpstreamError(HTTPException):
    """외부 저장소(에셋 스토어 등) 호출 실패."""

    def __init__(self, detail: str = "외부 저장소 요청에 실패했습니다."):
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)
