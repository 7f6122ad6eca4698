# app/services/media_client.py
import os
import re
from dataclasses import dataclass

import requests
from requests import RequestException

from app.domain.errors import DependencyFailure
from app.utils.logging import get_logger
from app.utils.retry import http_retry
from app.utils.settings import MEDIA_SERVICE_URL, MEDIA_SERVICE_TIMEOUT

logger = get_logger(__name__)

_URL_RE = re.compile(r"^https?://.+")


@dataclass(frozen=True)
class StoredAsset:
    url: str
    asset_id: str


class MediaClient:
    """
    HTTP client for the media host.

    store()   - mandatory upload, raises DependencyFailure
    release() - best-effort delete, never raises
    """

    def __init__(self, base_url: str | None = None, timeout: int | None = None):
        self.base_url = (base_url or MEDIA_SERVICE_URL).rstrip("/")
        self.timeout = timeout or MEDIA_SERVICE_TIMEOUT

    @http_retry()
    def _upload(self, local_path: str) -> dict:
        url = f"{self.base_url}/assets"
        logger.info(f"MediaClient POST {url} ({os.path.basename(local_path)})")

        with open(local_path, "rb") as fh:
            resp = requests.post(
                url,
                files={"file": (os.path.basename(local_path), fh)},
                timeout=self.timeout,
            )
        resp.raise_for_status()
        return resp.json()

    @http_retry()
    def _destroy(self, asset_id: str) -> dict:
        url = f"{self.base_url}/assets/{asset_id}"
        logger.info(f"MediaClient DELETE {url}")

        resp = requests.delete(url, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def store(self, local_path: str) -> StoredAsset:
        if not local_path:
            raise DependencyFailure("media", "no file to upload")
        try:
            data = self._upload(local_path)
        except (RequestException, OSError, ValueError) as e:
            logger.error(f"Upload of {local_path} failed: {e}")
            raise DependencyFailure("media", "Failed to upload image") from e
        finally:
            # the temp file is ours either way
            try:
                os.remove(local_path)
            except OSError:
                logger.warning(f"Could not remove temp file {local_path}")

        url = data.get("url") or data.get("secure_url")
        asset_id = data.get("asset_id") or data.get("public_id")
        if not url or not asset_id or not _URL_RE.match(url):
            logger.error(f"Media host returned an unusable asset: {data}")
            raise DependencyFailure("media", "Upload response is missing url or asset id")

        return StoredAsset(url=url, asset_id=asset_id)

    def release(self, asset_id: str | None) -> bool:
        if not asset_id:
            logger.warning("No asset id provided for deletion")
            return False
        try:
            data = self._destroy(asset_id)
        except (RequestException, ValueError) as e:
            logger.error(f"Media delete error for {asset_id}: {e}")
            return False

        if data.get("result") == "ok":
            logger.info(f"Asset deleted from media host: {asset_id}")
            return True

        logger.warning(f"Media delete failed for {asset_id}: {data}")
        return False
