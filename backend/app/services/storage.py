"""
Cloudinary uploads for influencer proof files
"""

import hashlib
import logging
import time
from typing import Dict, NamedTuple, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.core.config import settings
from app.core.exceptions import UpstreamServiceError, ValidationError
from app.core.http_client import HTTPClientConfig, ServiceHTTPClient

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_PREFIXES = ("image/",)
ALLOWED_CONTENT_TYPES = ("application/pdf",)


class UploadedFile(NamedTuple):
    """A multipart file read into memory"""
    filename: str
    content_type: Optional[str]
    content: bytes


def sign_params(params: Dict[str, str], api_secret: str) -> str:
    """Cloudinary request signature: sha1 of sorted key=value pairs plus the secret"""
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


def check_upload(filename: str, content_type: Optional[str], size: int):
    content_type = content_type or ""
    if not (content_type.startswith(ALLOWED_CONTENT_PREFIXES) or content_type in ALLOWED_CONTENT_TYPES):
        raise ValidationError(f"Only images and PDFs files are allowed ({filename})")
    if size > settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024:
        raise ValidationError(f"File {filename} exceeds {settings.MAX_UPLOAD_SIZE_MB}MB")


class CloudinaryUploader(ServiceHTTPClient):

    def __init__(
        self,
        cloud_name: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cloud_name = cloud_name or settings.CLOUDINARY_CLOUD_NAME
        self.api_key = api_key or settings.CLOUDINARY_API_KEY
        self.api_secret = api_secret or settings.CLOUDINARY_API_SECRET
        super().__init__(
            HTTPClientConfig(
                base_url=f"{settings.CLOUDINARY_API_URL}/{self.cloud_name}",
                timeout=settings.UPLOAD_REQUEST_TIMEOUT,
            ),
            transport=transport,
        )

    def _signed(self, params: Dict[str, str]) -> Dict[str, str]:
        params = {**params, "timestamp": str(int(time.time()))}
        return {**params, "api_key": self.api_key, "signature": sign_params(params, self.api_secret)}

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _post_upload(self, data: Dict[str, str], files: Dict[str, tuple]) -> httpx.Response:
        return await self.post("/auto/upload", data=data, files=files)

    async def upload(self, content: bytes, filename: str, content_type: str, folder: str) -> str:
        """Upload a file and return its secure URL"""
        check_upload(filename, content_type, len(content))
        data = self._signed({"folder": folder})
        try:
            response = await self._post_upload(data, {"file": (filename, content, content_type)})
        except httpx.HTTPError as e:
            raise UpstreamServiceError("Failed to upload files", status_code=500) from e
        secure_url = response.json().get("secure_url")
        logger.info(f"Uploaded {filename} to {folder}")
        return secure_url

    async def destroy(self, url: str) -> bool:
        """Best-effort removal of a previously uploaded file"""
        public_id = public_id_from_url(url)
        if not public_id:
            return False
        try:
            await self.post("/image/destroy", data=self._signed({"public_id": public_id}))
        except httpx.HTTPError as e:
            logger.error(f"Failed to delete file from storage: {url} ({e})")
            return False
        return True


def public_id_from_url(url: str) -> Optional[str]:
    """https://res.cloudinary.com/<cloud>/image/upload/v123/influencer-proofs/x/abc.png -> influencer-proofs/x/abc"""
    if not url or "/upload/" not in url:
        return None
    tail = url.split("/upload/", 1)[1]
    parts = tail.split("/")
    if parts and parts[0].startswith("v") and parts[0][1:].isdigit():
        parts = parts[1:]
    path = "/".join(parts)
    return path.rsplit(".", 1)[0] if "." in path else path


async def get_uploader():
    uploader = CloudinaryUploader()
    try:
        yield uploader
    finally:
        await uploader.aclose()
