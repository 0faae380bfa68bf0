"""Asset Store 어댑터입니다. 원격 이미지 호스트(Cloudinary REST API) 업로드/삭제를 캡슐화합니다."""

import asyncio
import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
from fastapi.concurrency import run_in_threadpool

from blogdesk.config import Settings, settings
from blogdesk.utils.errors import UpstreamError
from blogdesk.utils.images import build_public_id, compress_image

logger = logging.getLogger(__name__)

DEFAULT_TRANSFORMATION = "q_auto:good,f_auto"


@dataclass(frozen=True)
class AssetUploadResult:
    url: str
    public_id: str
    width: int
    height: int


@dataclass(frozen=True)
class DeleteOutcome:
    public_id: str
    deleted: bool
    error: Optional[str] = None


def sign_params(params: Dict[str, Any], api_secret: str) -> str:
    payload = "&".join(f"{key}={params[key]}" for key in sorted(params) if params[key] not in (None, ""))
    return hashlib.sha1(f"{payload}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryAssetStore:
    """Cloudinary 서명 업로드/삭제 클라이언트 (httpx 비동기)."""

    def __init__(self, config: Settings, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._client = client or httpx.AsyncClient(timeout=config.CLOUDINARY_TIMEOUT_SECONDS)

    def _endpoint(self, action: str) -> str:
        base = self.config.CLOUDINARY_UPLOAD_URL.rstrip("/")
        return f"{base}/{self.config.CLOUDINARY_CLOUD_NAME}/image/{action}"

    def _signed(self, params: Dict[str, Any]) -> Dict[str, Any]:
        params = {key: value for key, value in params.items() if value not in (None, "")}
        params["timestamp"] = int(time.time())
        params["signature"] = sign_params(params, self.config.CLOUDINARY_API_SECRET)
        params["api_key"] = self.config.CLOUDINARY_API_KEY
        return params

    async def upload_compressed(
        self,
        data: bytes,
        public_id: str,
        transformation: str = DEFAULT_TRANSFORMATION,
        mime_type: str = "image/jpeg",
    ) -> AssetUploadResult:
        params = self._signed(
            {
                "folder": self.config.CLOUDINARY_FOLDER,
                "public_id": public_id,
                "transformation": transformation,
            }
        )
        try:
            response = await self._client.post(
                self._endpoint("upload"),
                data={key: str(value) for key, value in params.items()},
                files={"file": (public_id, data, mime_type)},
            )
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamError(f"이미지 업로드에 실패했습니다: {exc}") from exc

        url = body.get("secure_url") or body.get("url")
        stored_id = body.get("public_id")
        if not url or not stored_id:
            raise UpstreamError("이미지 저장소 응답 형식이 올바르지 않습니다.")
        return AssetUploadResult(
            url=url,
            public_id=stored_id,
            width=int(body.get("width") or 0),
            height=int(body.get("height") or 0),
        )

    async def compress_and_upload(self, data: bytes, name: str, mime_type: str | None = None) -> AssetUploadResult:
        compressed = await run_in_threadpool(
            compress_image,
            data,
            mime_type,
            self.config.image_max_size,
            self.config.IMAGE_QUALITY,
        )
        result = await self.upload_compressed(
            compressed.data,
            build_public_id(name),
            mime_type=compressed.mime_type,
        )
        if result.width <= 0 or result.height <= 0:
            # 저장소가 치수를 돌려주지 않으면 인코딩된 결과의 치수를 사용한다.
            return AssetUploadResult(result.url, result.public_id, compressed.width, compressed.height)
        return result

    async def delete_by_id(self, public_id: str) -> DeleteOutcome:
        try:
            response = await self._client.post(
                self._endpoint("destroy"),
                data={key: str(value) for key, value in self._signed({"public_id": public_id}).items()},
            )
            response.raise_for_status()
            body = response.json()
            result = body.get("result") if isinstance(body, dict) else body
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("[assets] failed to delete %s: %s", public_id, exc)
            return DeleteOutcome(public_id=public_id, deleted=False, error=str(exc))
        if result != "ok":
            logger.warning("[assets] delete of %s returned %r", public_id, result)
            return DeleteOutcome(public_id=public_id, deleted=False, error=str(result))
        return DeleteOutcome(public_id=public_id, deleted=True)

    async def delete_many(self, public_ids: List[str]) -> List[DeleteOutcome]:
        if not public_ids:
            return []
        results = await asyncio.gather(
            *(self.delete_by_id(public_id) for public_id in public_ids),
            return_exceptions=True,
        )
        outcomes: List[DeleteOutcome] = []
        for public_id, result in zip(public_ids, results):
            if isinstance(result, BaseException):
                logger.warning("[assets] failed to delete %s: %s", public_id, result)
                outcomes.append(DeleteOutcome(public_id=public_id, deleted=False, error=str(result)))
            else:
                outcomes.append(result)
        return outcomes

    async def aclose(self) -> None:
        await self._client.aclose()


_asset_store: Optional[CloudinaryAssetStore] = None


def get_asset_store() -> CloudinaryAssetStore:
    global _asset_store
    if _asset_store is None:
        _asset_store = CloudinaryAssetStore(settings)
    return _asset_store


async def close_asset_store() -> None:
    global _asset_store
    if _asset_store is not None:
        await _asset_store.aclose()
        _asset_store = None
