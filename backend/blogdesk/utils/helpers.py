from typing import List

from fastapi import Request
from starlette.datastructures import UploadFile

from blogdesk.config import settings
from blogdesk.services.image_upload_service import ImageUploadItem
from blogdesk.utils.errors import ValidationError

IMAGE_NAME_FIELDS = ("image_names", "imageNames", "imageNames[]")


def validate_image_file(file: UploadFile) -> None:
    content_type = (file.content_type or "").lower()
    if not content_type.startswith("image/"):
        raise ValidationError(f"이미지 파일만 업로드할 수 있습니다. ({file.filename})")


async def read_image_uploads(request: Request) -> List[ImageUploadItem]:
    """multipart 요청의 모든 파일 필드를 입력 순서대로 읽습니다. 필드 이름은 가리지 않습니다."""
    content_type = request.headers.get("content-type", "")
    if not content_type.lower().startswith("multipart/form-data"):
        raise ValidationError("Content-Type은 multipart/form-data 이어야 합니다.")

    form = await request.form(max_files=settings.MAX_UPLOAD_FILES + 1)
    files = [value for _, value in form.multi_items() if isinstance(value, UploadFile)]
    if not files:
        raise ValidationError("업로드할 이미지가 없습니다.")
    if len(files) > settings.MAX_UPLOAD_FILES:
        raise ValidationError(f"한 번에 최대 {settings.MAX_UPLOAD_FILES}개까지 업로드할 수 있습니다.")

    names: List[str] = []
    for field_name in IMAGE_NAME_FIELDS:
        names.extend(str(value) for value in form.getlist(field_name) if isinstance(value, str))

    items: List[ImageUploadItem] = []
    for index, file in enumerate(files):
        validate_image_file(file)
        content = await file.read()
        if len(content) > settings.MAX_UPLOAD_SIZE:
            raise ValidationError(f"파일 크기가 제한({settings.MAX_UPLOAD_SIZE // (1024 * 1024)} MB)을 초과했습니다.")
        items.append(
            ImageUploadItem(
                data=content,
                mime_type=file.content_type,
                filename=file.filename,
                supplied_name=names[index] if index < len(names) else None,
            )
        )
    return items
