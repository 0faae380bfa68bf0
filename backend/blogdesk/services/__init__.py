"""서비스 레이어 패키지 초기화 모듈입니다."""

from blogdesk.services import (
    auth_service,
    asset_store,
    history_service,
    post_service,
    image_upload_service,
    user_service,
)
