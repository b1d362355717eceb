"""Lazily constructed collaborators shared through app.state."""
from fastapi import Request

from assembly.slide_renderer import SlideRenderer
from execution.asset_uploader import LivepeerAssetUploader
from execution.llm_client import AnthropicChatClient, BaseChatClient
from extraction.pipeline import CharacterExtractionPipeline
from extraction.worker import CharacterExtractor
from generation.image_client import LivepeerImageClient
from narrative.generator import StoryGenerator


def _state_get(request: Request, name: str, factory):
    state = request.app.state
    value = getattr(state, name, None)
    if value is None:
        value = factory()
        setattr(state, name, value)
    return value


def get_llm_client(request: Request) -> BaseChatClient:
    return _state_get(request, "llm_client", AnthropicChatClient)


def get_pipeline(request: Request) -> CharacterExtractionPipeline:
    return CharacterExtractionPipeline(CharacterExtractor(get_llm_client(request)))


def get_story_generator(request: Request) -> StoryGenerator:
    return StoryGenerator(get_llm_client(request))


def get_image_client(request: Request) -> LivepeerImageClient:
    return _state_get(request, "image_client", LivepeerImageClient)


def get_slide_renderer(request: Request) -> SlideRenderer:
    return _state_get(request, "slide_renderer", SlideRenderer)


def get_asset_uploader(request: Request) -> LivepeerAssetUploader:
    return _state_get(request, "asset_uploader", LivepeerAssetUploader)
