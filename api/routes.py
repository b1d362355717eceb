"""
HTTP routes for character extraction, story streaming and media generation.

Routes:
    POST /api/split   - document -> unique characters
    POST /api/chat    - story parameters -> streamed Markdown text
    POST /api/image   - sections -> one square image per section (concurrent)
    POST /api/images  - sections -> one widescreen image per section (sequential)
    POST /api/video   - sections -> hosted playback URL per section
"""
import asyncio
from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse

from api.dependencies import (
    get_asset_uploader,
    get_image_client,
    get_pipeline,
    get_slide_renderer,
    get_story_generator,
)
from api.schemas import SectionsRequest, SplitRequest
from assembly.slide_renderer import SlideRenderer
from execution.asset_uploader import AssetUploadError, LivepeerAssetUploader
from extraction.pipeline import CharacterExtractionPipeline, ExtractionError, InvalidDocumentError
from generation.image_client import LivepeerImageClient
from narrative.generator import StoryGenerator
from narrative.models import StoryRequest
from utils.logger import setup_logger

logger = setup_logger(__name__)
router = APIRouter(prefix="/api")


@router.get("/health")
async def health():
    return {"status": "healthy"}


@router.post("/split")
async def split_document(
    body: SplitRequest,
    pipeline: CharacterExtractionPipeline = Depends(get_pipeline),
):
    try:
        characters = await pipeline.run(
            body.document,
            chunk_size=body.chunk_size,
            chunk_overlap=body.chunk_overlap
        )
    except InvalidDocumentError as e:
        return JSONResponse({"message": str(e)}, status_code=400)
    except ExtractionError as e:
        logger.error(f"Error extracting characters: {e}")
        return JSONResponse({"message": f"Failed to extract characters: {e}"}, status_code=500)

    return [character.model_dump() for character in characters]


@router.post("/chat")
async def generate_story(
    body: StoryRequest,
    generator: StoryGenerator = Depends(get_story_generator),
):
    return StreamingResponse(generator.stream(body), media_type="text/plain; charset=utf-8")


@router.post("/image")
async def generate_section_images(
    body: SectionsRequest,
    image_client: LivepeerImageClient = Depends(get_image_client),
):
    sections = body.valid_sections()
    if sections is None:
        return JSONResponse({"error": "Invalid input data"}, status_code=400)

    try:
        images = await image_client.generate_for_sections(sections)
    except Exception:
        logger.exception("Error in /api/image")
        return JSONResponse({"error": "Error generating images"}, status_code=500)

    return {"images": images}


@router.post("/images")
async def generate_widescreen_images(
    body: SectionsRequest,
    image_client: LivepeerImageClient = Depends(get_image_client),
):
    sections = body.valid_sections()
    if sections is None:
        return JSONResponse({"error": "Invalid sections"}, status_code=400)

    try:
        image_urls = await image_client.generate_widescreen(sections)
    except Exception as e:
        logger.exception("Error generating images")
        return JSONResponse({"error": str(e) or "Internal Server Error"}, status_code=500)

    return {"imageUrls": image_urls}


@router.post("/video")
async def generate_section_videos(
    body: SectionsRequest,
    renderer: SlideRenderer = Depends(get_slide_renderer),
    uploader: LivepeerAssetUploader = Depends(get_asset_uploader),
):
    sections = body.valid_sections(allow_empty=False)
    if sections is None:
        return JSONResponse({"error": "Invalid input data"}, status_code=400)

    playback_urls = []
    try:
        for index, text in enumerate(sections):
            result = await asyncio.to_thread(renderer.render, text, index)
            if not result.success:
                raise AssetUploadError(f"Slide rendering failed for section {index}: {result.error}")

            try:
                upload = await uploader.upload(result.output_path, f"story-section-{index}.mp4")
            finally:
                Path(result.output_path).unlink(missing_ok=True)

            playback_urls.append(upload.playback_url)
    except Exception:
        logger.exception("Error generating or uploading video")
        return JSONResponse({"error": "Error generating or uploading video"}, status_code=500)

    return {"playbackUrls": playback_urls}
