"""End-to-end tests of the character extraction pipeline with a fake model."""
import json

import pytest

from extraction.pipeline import (
    CharacterExtractionPipeline,
    ExtractionError,
    InvalidDocumentError,
)
from extraction.worker import CharacterExtractor
from fakes import FakeChatClient


def make_pipeline(client, **kwargs):
    return CharacterExtractionPipeline(CharacterExtractor(client), **kwargs)


@pytest.mark.asyncio
async def test_short_document_single_call():
    """Test two short paragraphs fit one chunk and yield both characters."""
    document = (
        "Mara Quill keeps the lighthouse on Gull Point. She is stern but kind.\n\n"
        "Tobias Finch, a travelling tinker, arrives during the storm with a broken compass."
    )
    client = FakeChatClient(respond=lambda chunk: json.dumps([
        {"name": "Mara Quill", "description": "Lighthouse keeper", "personality": "Stern but kind"},
        {"name": "Tobias Finch", "description": "Travelling tinker", "personality": "Curious"},
    ]))

    characters = await make_pipeline(client).run(document, chunk_size=1000, chunk_overlap=200)

    assert client.calls == [document]
    assert [c.name for c in characters] == ["Mara Quill", "Tobias Finch"]


@pytest.mark.asyncio
async def test_long_document_windows():
    """Test a 2500 character document is sent as three overlapping windows."""
    document = "".join(chr(ord('a') + i % 26) for i in range(2500))
    client = FakeChatClient()

    await make_pipeline(client).run(document, chunk_size=1000, chunk_overlap=200)

    assert client.calls == [
        document[0:1000], document[800:1800], document[1600:2500]
    ]


@pytest.mark.asyncio
async def test_duplicate_across_chunks_keeps_first():
    """Test "Bob" found in two chunks is reported once with the first description."""
    document = "A" * 150 + "B" * 150
    first_chunk, second_chunk = document[:200], document[100:]

    def respond(chunk):
        if chunk == first_chunk:
            return '[{"name": "Bob", "description": "First sighting", "personality": "Shy"}]'
        return 'Here: [{"name": "bob", "description": "Second sighting", "personality": "Loud"}]'

    client = FakeChatClient(respond=respond, delays={first_chunk: 0.02})

    characters = await make_pipeline(client).run(document, chunk_size=200, chunk_overlap=100)

    assert len(client.calls) == 2
    assert len(characters) == 1
    assert characters[0].name == "Bob"
    assert characters[0].description == "First sighting"


@pytest.mark.asyncio
async def test_failed_chunk_does_not_abort_run():
    """Test one chunk's bad output only drops that chunk's characters."""
    document = "x" * 300

    def respond(chunk):
        if chunk.startswith("x" * 200) and len(chunk) == 200:
            return RuntimeError("rate limited")
        return '[{"name": "Zed", "description": "", "personality": ""}]'

    client = FakeChatClient(respond=respond)

    characters = await make_pipeline(client).run(document, chunk_size=200, chunk_overlap=50)

    assert [c.name for c in characters] == ["Zed"]


@pytest.mark.asyncio
async def test_names_trimmed_and_placeholders_assigned():
    """Test blank names get numbered placeholders before deduplication."""
    client = FakeChatClient(respond=lambda chunk: json.dumps([
        {"name": "  Ada  ", "description": "Inventor"},
        {"name": "", "description": "A hooded figure"},
        {"description": "A silent child"},
        {"name": "ada", "description": "Duplicate"},
    ]))

    characters = await make_pipeline(client).run("Some story text.")

    assert [c.name for c in characters] == ["Ada", "Unnamed Character 1", "Unnamed Character 2"]
    assert characters[0].description == "Inventor"


@pytest.mark.asyncio
async def test_chunk_size_clamped():
    """Test oversized chunk sizes are clamped to the maximum."""
    document = "y" * 5000
    client = FakeChatClient()

    await make_pipeline(client, max_chunk_size=4000).run(document, chunk_size=10000, chunk_overlap=0)

    assert sorted(len(chunk) for chunk in client.calls) == [1000, 4000]


@pytest.mark.asyncio
@pytest.mark.parametrize("document,message", [
    ("", "Invalid input document"),
    (None, "Invalid input document"),
    (42, "Invalid input document"),
    ("   \n\t", "Empty document provided"),
])
async def test_invalid_documents(document, message):
    """Test unusable documents are rejected before any model call."""
    client = FakeChatClient()

    with pytest.raises(InvalidDocumentError, match=message):
        await make_pipeline(client).run(document)

    assert client.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("size,overlap", [(100, 100), (0, 0), (100, -5), (5000, 4500)])
async def test_invalid_chunk_settings(size, overlap):
    """Test chunk settings that cannot make progress are rejected."""
    with pytest.raises(InvalidDocumentError):
        await make_pipeline(FakeChatClient()).run("Some text.", chunk_size=size, chunk_overlap=overlap)


@pytest.mark.asyncio
async def test_scheduling_failure_raises_extraction_error():
    """Test an error escaping a worker fails the whole run."""

    class BrokenExtractor:
        async def extract(self, chunk, chunk_number=1):
            raise RuntimeError("event loop trouble")

    pipeline = CharacterExtractionPipeline(BrokenExtractor())

    with pytest.raises(ExtractionError, match="event loop trouble"):
        await pipeline.run("Some text.")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
