"""이미지 정규화(회전 보정/축소/재인코딩)와 에셋 키 생성 헬퍼입니다."""

import io
import re
import time
import uuid
from dataclasses import dataclass

from PIL import Image, ImageOps

DEFAULT_MAX_SIZE = (1600, 1200)
DEFAULT_QUALITY = 80

_WHITESPACE_RE = re.compile(r"\s+")
_UNSAFE_KEY_CHARS_RE = re.compile(r"[^\w\-]")


@dataclass(frozen=True)
class CompressedImage:
    data: bytes
    format: str  # JPEG/PNG/WEBP
    width: int
    height: int

    @property
    def mime_type(self) -> str:
        return f"image/{self.format.lower()}"


def output_format_for(mime_type: str | None) -> str:
    normalized = (mime_type or "").lower()
    if "png" in normalized:
        return "PNG"
    if "webp" in normalized:
        return "WEBP"
    return "JPEG"


def compress_image(
    data: bytes,
    mime_type: str | None = None,
    max_size: tuple[int, int] = DEFAULT_MAX_SIZE,
    quality: int = DEFAULT_QUALITY,
) -> CompressedImage:
    """EXIF 방향을 반영하고 max_size 안으로 축소(확대 없음)한 뒤 재인코딩합니다.

    디코딩할 수 없는 입력이면 PIL.UnidentifiedImageError(OSError)를 그대로 올립니다.
    """
    fmt = output_format_for(mime_type)
    with Image.open(io.BytesIO(data)) as source:
        image = ImageOps.exif_transpose(source)
        image.thumbnail(max_size, Image.Resampling.LANCZOS)

        if fmt == "JPEG" and image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
        elif fmt == "WEBP" and image.mode not in ("RGB", "RGBA"):
            image = image.convert("RGBA")

        buffer = io.BytesIO()
        if fmt == "PNG":
            image.save(buffer, format=fmt, optimize=True)
        else:
            image.save(buffer, format=fmt, quality=quality)
        width, height = image.size

    return CompressedImage(data=buffer.getvalue(), format=fmt, width=width, height=height)


def sanitize_name(name: str) -> str:
    text = _WHITESPACE_RE.sub("_", (name or "").strip())
    text = _UNSAFE_KEY_CHARS_RE.sub("", text)
    return text[:80] or "image"


def build_public_id(name: str) -> str:
    # 동일 ms에 같은 이름이 동시에 올라와도 충돌하지 않도록 짧은 난수를 덧붙인다.
    return f"blog_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}_{sanitize_name(name)}"


def strip_extension(filename: str | None) -> str:
    if not filename or "." not in filename:
        return filename or ""
    return filename.rsplit(".", 1)[0]
