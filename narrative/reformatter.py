"""Incremental Markdown cleanup of a streamed story.

Every delta re-derives the formatted snapshot from the whole accumulated
text, so the work per delta is linear in the story length.
"""
import json
import re
from typing import AsyncIterable, Callable, List, Optional

from utils.logger import setup_logger
from narrative.models import StreamState
import config

logger = setup_logger(__name__)

SnapshotCallback = Callable[[str], None]

# 0:"escaped text"  -- numeric-prefixed quoted transport frames
FRAME_PATTERN = re.compile(r'\d+:"((?:[^"\\]|\\.)*)"\n?')
FRAMED_START = re.compile(r'^\s*\d+:"')
DANGLING_FRAME = re.compile(r'\d+:"((?:[^"\\]|\\.)*)$')

# Markers only count at a line start or straight after a sentence terminator
HEADING_PATTERN = re.compile(
    r'(?:^|(?<=[.!?"\'”’)]))[ \t]*(#{1,6})[ \t]*([^\s#][^\n]*)',
    re.MULTILINE
)
SENTENCE_START = re.compile(r'(\.\s+)([a-z])')
SENTENCE_LINE_END = re.compile(r'([.!?]["\'”’)]?)\n(?=\S)')


def _decode_frame(body: str) -> str:
    try:
        return json.loads(f'"{body}"')
    except json.JSONDecodeError:
        # Truncated escape at the end of a partial frame
        return body.rstrip("\\").replace('\\"', '"')


def strip_transport_framing(text: str) -> str:
    """Unwrap numeric/quote frames when the whole text is framed."""
    if not FRAMED_START.match(text):
        return text

    text = FRAME_PATTERN.sub(lambda m: _decode_frame(m.group(1)), text.lstrip())
    return DANGLING_FRAME.sub(lambda m: _decode_frame(m.group(1)), text)


def _format_heading(match: re.Match) -> str:
    return f"\n\n{match.group(1)} {match.group(2).rstrip()}\n\n"


def format_story(raw_text: str) -> str:
    """Turn accumulated raw stream text into display-ready Markdown.

    Heuristic cleanup, not guaranteed idempotent on already-clean input.

    Args:
        raw_text: Everything received so far

    Returns:
        Formatted Markdown snapshot
    """
    text = strip_transport_framing(raw_text)
    text = text.replace("\\n", "\n")

    text = re.sub(r'[ \t]+', ' ', text)
    text = re.sub(r' *\n *', '\n', text)

    text = HEADING_PATTERN.sub(_format_heading, text)
    text = SENTENCE_START.sub(lambda m: m.group(1) + m.group(2).upper(), text)
    text = SENTENCE_LINE_END.sub(r'\1\n\n', text)

    text = re.sub(r'\n{3,}', '\n\n', text)
    return text.strip()


def split_sections(raw_text: str) -> List[str]:
    """Split story text on blank lines, dropping empty sections."""
    return [section for section in raw_text.split("\n\n") if section.strip()]


class StoryStreamReformatter:
    """Accumulates stream deltas and keeps a formatted snapshot current.

    STREAMING until ``complete`` or ``fail`` is called; both are terminal.
    """

    def __init__(self):
        self.raw_text = ""
        self.formatted = ""
        self.sections: List[str] = []
        self.state = StreamState.STREAMING
        self.error: str = ""

    def feed(self, delta: str) -> str:
        """Append a delta and recompute the snapshot from the full text.

        Returns:
            The new formatted snapshot
        """
        if self.state is not StreamState.STREAMING:
            raise RuntimeError(f"Cannot feed a stream in state {self.state.value}")

        self.raw_text += delta
        self.formatted = format_story(self.raw_text)
        return self.formatted

    def complete(self) -> List[str]:
        """Run the final formatting pass and split the story into sections."""
        if self.state is not StreamState.STREAMING:
            raise RuntimeError(f"Cannot complete a stream in state {self.state.value}")

        self.formatted = format_story(self.raw_text)
        self.sections = split_sections(self.raw_text)
        self.state = StreamState.COMPLETE

        logger.info(f"Story complete: {len(self.raw_text)} characters, {len(self.sections)} sections")
        return self.sections

    def fail(self, reason: str) -> str:
        """Discard the partial story and show the fixed error message."""
        logger.error(f"Story stream failed: {reason}")

        self.error = reason
        self.raw_text = ""
        self.sections = []
        self.formatted = config.STORY_ERROR_MESSAGE
        self.state = StreamState.ERROR
        return self.formatted

    async def consume(
        self,
        deltas: AsyncIterable[str],
        on_update: Optional[SnapshotCallback] = None
    ) -> "StoryStreamReformatter":
        """Drive the reformatter from a delta stream to a terminal state.

        ``on_update`` sees the snapshot after every delta, before the next
        one is requested, and once more with the terminal snapshot. Any
        failure while iterating ends in ERROR.

        Args:
            deltas: Text deltas in arrival order
            on_update: Called with each formatted snapshot

        Returns:
            self, in COMPLETE or ERROR
        """
        try:
            async for delta in deltas:
                if not delta:
                    continue
                snapshot = self.feed(delta)
                if on_update:
                    on_update(snapshot)
            self.complete()
        except Exception as e:
            self.fail(f"{type(e).__name__}: {e}")

        if on_update:
            on_update(self.formatted)

        return self
