import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from duelist.errors import EmptyDocument, FileTooLarge, NoFileProvided, UnsupportedMediaType
from extraction.dedup import filter_duplicates
from extraction.task_extractor import TaskExtractor
from extraction.text_extractor import extract_text, is_supported
from storage.task_store import TaskStore

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
PREVIEW_CHARS = 500


@dataclass
class UploadedDocument:
    filename: str
    media_type: str
    data: bytes


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def summary_message(added: int, skipped: int) -> str:
    return (
        f"Syllabus processed successfully - {_plural(added, 'new task')} added, "
        f"{_plural(skipped, 'duplicate')} skipped"
    )


class BackendAPI:
    """Central orchestration of an upload: text -> drafts -> dedup -> insert."""

    def __init__(self, task_store: TaskStore, task_extractor: Optional[TaskExtractor] = None):
        self.task_store = task_store
        self.task_extractor = task_extractor or TaskExtractor()

    async def submit_document(self, document: Optional[UploadedDocument]) -> dict:
        """Runs the upload pipeline; the final insert is the only write."""

        # 1. Validate the upload before touching its bytes
        if document is None:
            raise NoFileProvided()
        if not is_supported(document.media_type):
            logger.info(f"Rejected {document.filename!r}: unsupported type {document.media_type}")
            raise UnsupportedMediaType()
        if len(document.data) > MAX_UPLOAD_BYTES:
            logger.info(f"Rejected {document.filename!r}: {len(document.data)} bytes")
            raise FileTooLarge()

        # 2. Extract text (pdf parsing is CPU-bound)
        text = await asyncio.to_thread(extract_text, document.data, document.media_type)
        if not text.strip():
            raise EmptyDocument()

        # 3. Ask the model for task drafts
        drafts = await self.task_extractor.extract(text)

        # 4. Drop drafts already stored
        existing = await self.task_store.list_all()
        fresh = filter_duplicates(drafts, existing)
        skipped = len(drafts) - len(fresh)

        # 5. Persist survivors
        inserted = await self.task_store.insert_many(fresh) if fresh else []

        logger.info(
            f"Processed {document.filename!r}: {len(inserted)} added, {skipped} duplicates skipped"
        )
        return {
            "message": summary_message(len(inserted), skipped),
            "tasks": [task.model_dump(mode="json") for task in inserted],
            "extractedText": text[:PREVIEW_CHARS] + "...",
            "duplicatesSkipped": skipped,
        }
