import asyncio
from pathlib import Path
from typing import Optional

import aiofiles
import httpx
from pydantic import BaseModel

from utils.logger import setup_logger
import config

logger = setup_logger(__name__)


class AssetUploadError(Exception):
    """Raised when a video cannot be uploaded or never becomes playable."""
    pass


class UploadResult(BaseModel):
    asset_id: str
    playback_url: str
    attempts: int


class LivepeerAssetUploader:
    """Uploads rendered videos to Livepeer Studio and waits for playback."""

    def __init__(
        self,
        api_key: Optional[str] = config.LIVEPEER_API_KEY,
        base_url: str = config.LIVEPEER_STUDIO_URL,
        poll_interval_seconds: float = config.ASSET_POLL_INTERVAL,
        max_attempts: int = config.ASSET_POLL_ATTEMPTS,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.poll_interval_seconds = poll_interval_seconds
        self.max_attempts = max_attempts
        self.http_client = http_client or httpx.AsyncClient(timeout=300)

    def _headers(self) -> dict:
        if not self.api_key:
            raise AssetUploadError("Missing Livepeer API key")
        return {"Authorization": f"Bearer {self.api_key}"}

    async def upload(self, video_path: str, name: str) -> UploadResult:
        headers = self._headers()

        # 1. Request an upload URL
        response = await self.http_client.post(
            f"{self.base_url}/asset/request-upload",
            json={"name": name},
            headers=headers
        )
        response.raise_for_status()
        data = response.json()
        upload_url = data["url"]
        asset_id = data["asset"]["id"]

        # 2. Upload the file
        async with aiofiles.open(video_path, 'rb') as f:
            content = await f.read()
        put_response = await self.http_client.put(
            upload_url,
            content=content,
            headers={"Content-Type": "video/mp4"}
        )
        put_response.raise_for_status()
        logger.info(f"Uploaded {Path(video_path).name} as asset {asset_id}")

        # 3. Wait until the asset is playable
        return await self.wait_for_playback(asset_id)

    async def wait_for_playback(self, asset_id: str) -> UploadResult:
        headers = self._headers()

        for attempt in range(1, self.max_attempts + 1):
            await asyncio.sleep(self.poll_interval_seconds)

            response = await self.http_client.get(
                f"{self.base_url}/asset/{asset_id}",
                headers=headers
            )
            response.raise_for_status()
            asset = response.json()

            phase = (asset.get("status") or {}).get("phase")
            playback_id = asset.get("playbackId")
            if phase == "ready" and playback_id:
                return UploadResult(
                    asset_id=asset_id,
                    playback_url=f"https://lp-playback.com/hls/{playback_id}/index.m3u8",
                    attempts=attempt
                )

            if phase == "failed":
                raise AssetUploadError(f"Asset {asset_id} failed processing")

            logger.debug(f"Asset {asset_id} not ready (phase={phase}), attempt {attempt}/{self.max_attempts}")

        raise AssetUploadError("Timed out waiting for asset to be ready")

    async def aclose(self) -> None:
        await self.http_client.aclose()
