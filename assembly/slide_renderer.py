import uuid

import ffmpeg
from pathlib import Path
from typing import Optional
from pydantic import BaseModel

from utils.logger import setup_logger
import config

logger = setup_logger(__name__)

class SlideResult(BaseModel):
    success: bool
    output_path: str | None
    duration_seconds: int
    error: str | None

class SlideRenderer:
    """Renders a story section as a short text-on-black video slide."""

    def __init__(
        self,
        output_dir: Path = config.VIDEO_TEMP_DIR,
        font_file: Optional[str] = config.SLIDE_FONT_FILE,
        duration_seconds: int = config.SLIDE_DURATION_SECONDS,
        size: str = config.SLIDE_SIZE,
        ffmpeg_path: str = 'ffmpeg'
    ):
        self.output_dir = Path(output_dir)
        self.font_file = font_file
        self.duration_seconds = duration_seconds
        self.size = size
        self.ffmpeg_path = ffmpeg_path

    def build(self, text: str, output_path: str):
        drawtext_options = {
            'fontsize': 36,
            'fontcolor': 'white',
            'x': '(w-text_w)/2',
            'y': '(h-text_h)/2',
            'box': 1,
            'boxcolor': 'black@0.5',
        }
        if self.font_file:
            drawtext_options['fontfile'] = self.font_file

        return (
            ffmpeg
            .input(f'color=c=black:s={self.size}:d={self.duration_seconds}', f='lavfi')
            .drawtext(text=text, **drawtext_options)
            .output(output_path, movflags='frag_keyframe+empty_moov')
            .overwrite_output()
        )

    def render(self, text: str, index: int) -> SlideResult:
        # Unique per call: concurrent requests render the same section indexes
        output_path = self.output_dir / f"story-section-{index}-{uuid.uuid4().hex}.mp4"
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)

            self.build(text, str(output_path)).run(
                cmd=self.ffmpeg_path, capture_stdout=True, capture_stderr=True
            )
            logger.info(f"Video created successfully at {output_path}")

            return SlideResult(
                success=True,
                output_path=str(output_path),
                duration_seconds=self.duration_seconds,
                error=None
            )

        except ffmpeg.Error as e:
            stderr = e.stderr.decode('utf8', errors='replace') if e.stderr else str(e)
            logger.error(f"FFmpeg error rendering section {index}: {stderr[-500:]}")
            return SlideResult(
                success=False,
                output_path=None,
                duration_seconds=self.duration_seconds,
                error=stderr
            )
        except OSError as e:
            return SlideResult(
                success=False,
                output_path=None,
                duration_seconds=self.duration_seconds,
                error=str(e)
            )
