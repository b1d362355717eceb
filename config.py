"""Configuration module for StoryForge."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# API Configuration
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-opus-4-5-20251101")
EXTRACTION_TEMPERATURE = 0.1  # Near-deterministic character extraction
EXTRACTION_MAX_TOKENS = int(os.getenv("EXTRACTION_MAX_TOKENS", "2048"))
STORY_TEMPERATURE = 0.7
STORY_MAX_TOKENS = int(os.getenv("STORY_MAX_TOKENS", "2048"))

# Chunking Configuration (characters, not tokens)
DEFAULT_CHUNK_SIZE = int(os.getenv("CHUNK_SIZE", "1000"))
DEFAULT_CHUNK_OVERLAP = int(os.getenv("CHUNK_OVERLAP", "200"))
MAX_CHUNK_SIZE = 4000
MAX_CHUNKS_PER_BATCH = 10  # Upper bound on concurrent extraction calls

# Retry Configuration
MAX_RETRIES = 3
RETRY_BACKOFF_MULTIPLIER = 2

# Image Generation (Livepeer AI gateway)
LIVEPEER_API_KEY = os.getenv("LIVEPEER_API_KEY")
LIVEPEER_SD_GATEWAY_HOST = os.getenv("LIVEPEER_SD_GATEWAY_HOST", "dream-gateway.livepeer.cloud")
LIVEPEER_SD_MODEL_ID = os.getenv("LIVEPEER_SD_MODEL_ID", "ByteDance/SDXL-Lightning")
LIVEPEER_SD_NEGATIVE_PROMPT = os.getenv("LIVEPEER_SD_NEGATIVE_PROMPT")
LIVEPEER_SD_IMAGE_SIZE = int(os.getenv("LIVEPEER_SD_IMAGE_SIZE", "1024"))
LIVEPEER_SD_GUIDANCE = float(os.getenv("LIVEPEER_SD_GUIDANCE", "15"))
LIVEPEER_SD_IMAGE_COUNT = int(os.getenv("LIVEPEER_SD_IMAGE_COUNT", "1"))  # One image per section

# Video Slides + Asset Hosting
LIVEPEER_STUDIO_URL = os.getenv("LIVEPEER_STUDIO_URL", "https://livepeer.studio/api")
VIDEO_TEMP_DIR = Path(os.getenv("VIDEO_TEMP_DIR", "/tmp/videos"))
SLIDE_FONT_FILE = os.getenv("SLIDE_FONT_FILE")
SLIDE_DURATION_SECONDS = 5
SLIDE_SIZE = "1280x720"
ASSET_POLL_INTERVAL = 5.0
ASSET_POLL_ATTEMPTS = 10

# Server
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "8000"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Shown in place of a story when the stream fails
STORY_ERROR_MESSAGE = "Sorry, something went wrong while generating your story. Please try again."
