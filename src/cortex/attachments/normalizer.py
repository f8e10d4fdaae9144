"""Attachment normalization.

Turns one raw user-selected file into a model-ready Attachment.

Hidden design decisions:
- Which media types are sent as binary and which as extracted text
- Using python-docx for Word document text extraction
- Media type detection from file names when none is declared
"""

import asyncio
import base64
import io
import logging
import mimetypes
from pathlib import Path

from docx import Document

from ..conversation.models import Attachment, AttachmentKind
from ..exceptions import AttachmentExtractionFailure, UnsupportedAttachmentType

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
TEXT_MIME_TYPE = "text/plain"
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

BINARY_DOCUMENT_TYPES = {PDF_MIME_TYPE}

# Declared types that say nothing about the content
GENERIC_MIME_TYPES = {"", "application/octet-stream"}


def is_image(mime_type: str) -> bool:
    return mime_type.startswith("image/")


def is_plain_text(mime_type: str, file_name: str) -> bool:
    if mime_type not in GENERIC_MIME_TYPES:
        return mime_type == TEXT_MIME_TYPE
    return file_name.lower().endswith(".txt")


def base_mime_type(mime_type: str | None) -> str:
    """Lowercased media type without parameters such as charset."""
    return (mime_type or "").split(";", 1)[0].strip().lower()


def is_word_document(mime_type: str, file_name: str) -> bool:
    return mime_type == DOCX_MIME_TYPE or file_name.lower().endswith(".docx")


def extract_docx_text(data: bytes, file_name: str = "") -> str:
    """Extract plain text from a Word document.

    Paragraph text comes first, followed by the text of table cells.

    Args:
        data: Raw .docx bytes
        file_name: Name used in error messages

    Returns:
        Extracted text, one paragraph per line

    Raises:
        AttachmentExtractionFailure: If the container or its XML is malformed
    """
    try:
        document = Document(io.BytesIO(data))
        lines = [p.text for p in document.paragraphs]
        for table in document.tables:
            for row in table.rows:
                for cell in row.cells:
                    lines.extend(p.text for p in cell.paragraphs)
    except Exception as e:
        # python-docx surfaces zip, OPC and lxml errors without a common base
        raise AttachmentExtractionFailure(file_name, str(e) or type(e).__name__) from e

    return "\n".join(lines)


def normalize_attachment(data: bytes, mime_type: str, file_name: str) -> Attachment:
    """Convert one raw file into an Attachment.

    Images and PDFs are base64-encoded; plain text is decoded as UTF-8;
    Word documents have their text extracted.

    Args:
        data: Raw file bytes
        mime_type: Declared media type (may be empty)
        file_name: Original file name

    Returns:
        A single Attachment

    Raises:
        UnsupportedAttachmentType: For any other media type
        AttachmentExtractionFailure: If a document cannot be read
    """
    mime_type = base_mime_type(mime_type)

    if is_image(mime_type) or mime_type in BINARY_DOCUMENT_TYPES:
        return Attachment(
            kind=AttachmentKind.IMAGE if is_image(mime_type) else AttachmentKind.GENERIC_FILE,
            mime_type=mime_type,
            data=base64.b64encode(data).decode("ascii"),
            name=file_name,
            is_text=False,
        )

    if is_plain_text(mime_type, file_name):
        return Attachment(
            kind=AttachmentKind.GENERIC_FILE,
            mime_type=TEXT_MIME_TYPE,
            data=data.decode("utf-8", errors="replace"),
            name=file_name,
            is_text=True,
        )

    if is_word_document(mime_type, file_name):
        return Attachment(
            kind=AttachmentKind.GENERIC_FILE,
            mime_type=DOCX_MIME_TYPE,
            data=extract_docx_text(data, file_name),
            name=file_name,
            is_text=True,
        )

    raise UnsupportedAttachmentType(file_name, mime_type)


def guess_mime_type(path: Path) -> str:
    """Guess a media type from a file name, empty if unknown."""
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or ""


async def load_attachment(path: str | Path, mime_type: str | None = None) -> Attachment:
    """Read a file from disk and normalize it.

    File reading and text extraction run in a worker thread so the
    event loop stays responsive.

    Args:
        path: File to attach
        mime_type: Declared media type (guessed from the name if None)

    Returns:
        A single Attachment
    """
    file_path = Path(path)
    declared = mime_type if mime_type is not None else guess_mime_type(file_path)

    data = await asyncio.to_thread(file_path.read_bytes)
    attachment = await asyncio.to_thread(normalize_attachment, data, declared, file_path.name)
    logger.debug(
        "Attached %s as %s (text=%s)", file_path.name, attachment.mime_type, attachment.is_text
    )
    return attachment
