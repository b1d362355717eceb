"""Test the image, slide and asset-upload collaborators."""
import json
from pathlib import Path

import httpx
import pytest

from assembly.slide_renderer import SlideRenderer
from execution.asset_uploader import AssetUploadError, LivepeerAssetUploader
from generation.image_client import ImageGenerationError, LivepeerImageClient


def image_client(handler, **kwargs):
    return LivepeerImageClient(
        api_key="sd-key",
        gateway_host="gateway.test",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        **kwargs
    )


@pytest.mark.asyncio
async def test_text_to_image_request():
    """Test the gateway request carries the prompt, size and bearer token."""
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"images": [{"url": "https://img.test/a.png"}, {"url": "https://img.test/b.png"}]})

    client = image_client(handler, negative_prompt="blurry")
    urls = await client.text_to_image("A lighthouse", width=512, height=512)

    assert urls == ["https://img.test/a.png", "https://img.test/b.png"]
    request = seen[0]
    assert str(request.url) == "https://gateway.test/text-to-image"
    assert request.headers["Authorization"] == "Bearer sd-key"
    body = json.loads(request.content)
    assert body["prompt"] == "A lighthouse"
    assert (body["width"], body["height"]) == (512, 512)
    assert body["negative_prompt"] == "blurry"


@pytest.mark.asyncio
async def test_sections_keep_their_order():
    """Test concurrent generation returns the first URL of each section in order."""
    def handler(request):
        prompt = json.loads(request.content)["prompt"]
        return httpx.Response(200, json={"images": [{"url": f"https://img.test/{prompt}.png"}]})

    urls = await image_client(handler).generate_for_sections(["one", "two", "three"])

    assert urls == ["https://img.test/one.png", "https://img.test/two.png", "https://img.test/three.png"]


@pytest.mark.asyncio
async def test_widescreen_size():
    """Test widescreen generation asks for 1280x720."""
    sizes = []

    def handler(request):
        body = json.loads(request.content)
        sizes.append((body["width"], body["height"]))
        return httpx.Response(200, json={"images": [{"url": "https://img.test/w.png"}]})

    await image_client(handler).generate_widescreen(["one", "two"])

    assert sizes == [(1280, 720), (1280, 720)]


@pytest.mark.asyncio
async def test_no_images_raises():
    """Test an empty image list is an error."""
    client = image_client(lambda request: httpx.Response(200, json={"images": []}))

    with pytest.raises(ImageGenerationError):
        await client.text_to_image("A lighthouse")


def test_slide_command():
    """Test the slide is a lavfi colour source with centred text."""
    renderer = SlideRenderer(output_dir="/tmp/slides-test", font_file="/fonts/serif.ttf", duration_seconds=5)

    args = renderer.build("Once upon a time", "/tmp/slides-test/out.mp4").compile()

    assert args[0] == "ffmpeg"
    assert "lavfi" in args
    assert "color=c=black:s=1280x720:d=5" in args
    filter_graph = args[args.index("-filter_complex") + 1]
    assert "drawtext" in filter_graph
    assert "fontfile=/fonts/serif.ttf" in filter_graph
    assert "/tmp/slides-test/out.mp4" in args


class WritingGraph:
    """Stands in for an ffmpeg graph; run() writes the output file."""

    def __init__(self, output_path):
        self.output_path = output_path

    def run(self, **kwargs):
        Path(self.output_path).write_bytes(b"mp4")


def test_render_paths_unique_per_call(tmp_path):
    """Test renders of the same section index never share an output file."""
    renderer = SlideRenderer(output_dir=tmp_path)
    renderer.build = lambda text, output_path: WritingGraph(output_path)

    first = renderer.render("Request A, section zero", 0)
    second = renderer.render("Request B, section zero", 0)

    assert first.success and second.success
    assert first.output_path != second.output_path
    Path(first.output_path).unlink()
    assert Path(second.output_path).exists()
    assert Path(second.output_path).name.startswith("story-section-0-")


class AssetService:
    """Mock of the asset hosting API: becomes ready after a number of polls."""

    def __init__(self, ready_after=2, phase_when_done="ready"):
        self.ready_after = ready_after
        self.phase_when_done = phase_when_done
        self.polls = 0
        self.uploaded = b""

    def __call__(self, request):
        if request.url.path == "/api/asset/request-upload":
            assert json.loads(request.content) == {"name": "story-section-0.mp4"}
            return httpx.Response(200, json={"url": "https://upload.test/put", "asset": {"id": "asset-1"}})
        if request.method == "PUT":
            self.uploaded = request.content
            return httpx.Response(200)
        self.polls += 1
        if self.polls < self.ready_after:
            return httpx.Response(200, json={"status": {"phase": "processing"}})
        return httpx.Response(200, json={"status": {"phase": self.phase_when_done}, "playbackId": "pb-9"})


def uploader(service, **kwargs):
    return LivepeerAssetUploader(
        api_key="studio-key",
        base_url="https://studio.test/api",
        poll_interval_seconds=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(service)),
        **kwargs
    )


@pytest.mark.asyncio
async def test_upload_polls_until_ready(tmp_path):
    """Test the file is uploaded and the HLS URL returned once the asset is ready."""
    video = tmp_path / "story-section-0.mp4"
    video.write_bytes(b"fake-mp4")
    service = AssetService(ready_after=3)

    result = await uploader(service).upload(str(video), "story-section-0.mp4")

    assert service.uploaded == b"fake-mp4"
    assert result.asset_id == "asset-1"
    assert result.playback_url == "https://lp-playback.com/hls/pb-9/index.m3u8"
    assert result.attempts == 3


@pytest.mark.asyncio
async def test_upload_times_out(tmp_path):
    """Test polling gives up after the configured attempts."""
    video = tmp_path / "story-section-0.mp4"
    video.write_bytes(b"fake-mp4")

    with pytest.raises(AssetUploadError, match="Timed out"):
        await uploader(AssetService(ready_after=100), max_attempts=2).upload(str(video), "story-section-0.mp4")


@pytest.mark.asyncio
async def test_upload_requires_api_key(tmp_path):
    """Test a missing API key fails before any request."""
    client = LivepeerAssetUploader(api_key=None, http_client=httpx.AsyncClient())

    with pytest.raises(AssetUploadError, match="API key"):
        await client.upload(str(tmp_path / "x.mp4"), "x.mp4")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
