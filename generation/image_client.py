"""Text-to-image generation for story sections."""
import asyncio
from typing import Any, Dict, List, Optional

import httpx

from utils.logger import setup_logger
import config

logger = setup_logger(__name__)


class ImageGenerationError(Exception):
    """Raised when the image service returns no usable images."""
    pass


class LivepeerImageClient:
    """Client for the Livepeer AI text-to-image gateway."""

    def __init__(
        self,
        api_key: Optional[str] = config.LIVEPEER_API_KEY,
        gateway_host: str = config.LIVEPEER_SD_GATEWAY_HOST,
        model_id: str = config.LIVEPEER_SD_MODEL_ID,
        negative_prompt: Optional[str] = config.LIVEPEER_SD_NEGATIVE_PROMPT,
        guidance_scale: float = config.LIVEPEER_SD_GUIDANCE,
        num_images: int = config.LIVEPEER_SD_IMAGE_COUNT,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.api_key = api_key
        self.endpoint = f"https://{gateway_host}/text-to-image"
        self.model_id = model_id
        self.negative_prompt = negative_prompt
        self.guidance_scale = guidance_scale
        self.num_images = num_images
        self.http_client = http_client or httpx.AsyncClient(timeout=120)

    def build_request(self, prompt: str, width: int, height: int) -> Dict[str, Any]:
        body = {
            "prompt": prompt,
            "model_id": self.model_id,
            "guidance_scale": self.guidance_scale,
            "width": width,
            "height": height,
            "num_images_per_prompt": self.num_images,
        }
        if self.negative_prompt:
            body["negative_prompt"] = self.negative_prompt
        return body

    async def text_to_image(
        self,
        prompt: str,
        width: int = config.LIVEPEER_SD_IMAGE_SIZE,
        height: int = config.LIVEPEER_SD_IMAGE_SIZE
    ) -> List[str]:
        """Generate images for one prompt.

        Args:
            prompt: Image prompt (usually a story section)
            width: Image width in pixels
            height: Image height in pixels

        Returns:
            URLs of the generated images

        Raises:
            ImageGenerationError: If the service answers without images
            httpx.HTTPStatusError: On a non-2xx response
        """
        response = await self.http_client.post(
            self.endpoint,
            json=self.build_request(prompt, width, height),
            headers={"Authorization": f"Bearer {self.api_key}"}
        )
        response.raise_for_status()

        images = response.json().get("images") or []
        urls = [image["url"] for image in images if image.get("url")]
        if not urls:
            raise ImageGenerationError(f'No image generated for prompt: "{prompt[:80]}"')

        return urls

    async def generate_for_sections(self, sections: List[str]) -> List[str]:
        """Generate one square image per section, all sections concurrently.

        Returns:
            The first image URL of each section, in section order
        """
        results = await asyncio.gather(*(self.text_to_image(section) for section in sections))
        return [urls[0] for urls in results]

    async def generate_widescreen(self, sections: List[str]) -> List[str]:
        """Generate one 1280x720 image per section, one section at a time."""
        image_urls = []
        for index, section in enumerate(sections, start=1):
            logger.info(f"Generating image {index}/{len(sections)}")
            urls = await self.text_to_image(section, width=1280, height=720)
            image_urls.append(urls[0])
        return image_urls

    async def aclose(self) -> None:
        await self.http_client.aclose()
