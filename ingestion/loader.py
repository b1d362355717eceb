"""Source document loading for text and PDF uploads."""
import re
from pathlib import Path
from typing import List

import fitz  # PyMuPDF

from utils.logger import setup_logger
from ingestion.models import SourceDocument

logger = setup_logger(__name__)

TEXT_SUFFIXES = {".txt", ".md", ".markdown", ".text"}


class DocumentLoadError(Exception):
    """Raised when an uploaded document cannot be read."""
    pass


def normalize_pdf_text(pages: List[str]) -> str:
    """Join PDF pages and undo the usual extraction artifacts.

    Args:
        pages: Raw text of each page

    Returns:
        Single normalized string
    """
    text = "\n\n".join(pages)

    # Words hyphenated across line breaks
    text = re.sub(r'(\w+)-\s*\n\s*(\w+)', r'\1\2', text)
    text = re.sub(r'[ \t]+', ' ', text)
    text = '\n'.join(line.strip() for line in text.split('\n'))
    text = re.sub(r'\n{3,}', '\n\n', text)

    return text.strip()


class DocumentLoader:
    """Reads uploaded documents into memory."""

    def load(self, path: str) -> SourceDocument:
        """Load a document from disk.

        Args:
            path: Path to a .txt/.md or .pdf file

        Returns:
            SourceDocument with the full text

        Raises:
            DocumentLoadError: If the file is missing, unsupported or empty
        """
        path = Path(path)

        if not path.exists():
            raise DocumentLoadError(f"File not found: {path}")

        suffix = path.suffix.lower()
        if suffix == ".pdf":
            text = self._read_pdf(path)
        elif suffix in TEXT_SUFFIXES:
            try:
                text = path.read_text(encoding="utf-8")
            except UnicodeDecodeError as e:
                raise DocumentLoadError(f"{path.name} is not valid UTF-8 text: {e}")
        else:
            raise DocumentLoadError(f"Unsupported file type: {suffix or path.name}")

        if not text.strip():
            raise DocumentLoadError(f"{path.name} contains no text")

        logger.info(f"Loaded {path.name}: {len(text)} characters")

        return SourceDocument(
            title=path.stem,
            text=text,
            metadata={
                'filename': path.name,
                'word_count': len(text.split()),
            }
        )

    def _read_pdf(self, path: Path) -> str:
        try:
            doc = fitz.open(path)
        except Exception as e:
            raise DocumentLoadError(f"Failed to open PDF: {e}")

        try:
            pages = [page.get_text() for page in doc]
        finally:
            doc.close()

        return normalize_pdf_text(pages)
