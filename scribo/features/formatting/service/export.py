# File: scribo/features/formatting/service/export.py
import io
import logging
import re
import zipfile
from dataclasses import dataclass
from typing import Dict, Tuple

from scribo.core.errors import InputValidationError
from scribo.features.transcription.domain.models import PersistedTranscript

logger = logging.getLogger(__name__)

BUNDLE_FORMAT = "all"

# format -> (transcript attribute, file extension, content type)
EXPORT_FORMATS: Dict[str, Tuple[str, str, str]] = {
    "txt": ("plain_text", "txt", "text/plain"),
    "srt": ("srt", "srt", "text/srt"),
    "vtt": ("vtt", "vtt", "text/vtt"),
    "json": ("json", "json", "application/json"),
    "verbose_json": ("verbose_json", "json", "application/json"),
}

_EXTENSION = re.compile(r"\.[^/.]+$")


@dataclass(frozen=True)
class ExportedFile:
    """A downloadable transcript: attachment name, MIME type and body."""
    file_name: str
    content_type: str
    content: bytes


def base_name(file_name: str) -> str:
    """'Interview.final.MP4' -> 'Interview.final'"""
    return _EXTENSION.sub("", file_name)


def export_format(transcript: PersistedTranscript, file_name: str, fmt: str) -> ExportedFile:
    if fmt not in EXPORT_FORMATS:
        raise InputValidationError(f"Invalid format: {fmt}. Expected one of {', '.join(EXPORT_FORMATS)} or {BUNDLE_FORMAT}.")

    attribute, extension, content_type = EXPORT_FORMATS[fmt]
    return ExportedFile(
        file_name=f"{base_name(file_name)}.{extension}",
        content_type=content_type,
        content=getattr(transcript, attribute).encode("utf-8"),
    )


def export_bundle(transcript: PersistedTranscript, file_name: str) -> ExportedFile:
    """
    Zip of every text format. The verbose JSON is stored as '<base>-verbose.json'
    so it does not collide with the plain JSON export.
    """
    base = base_name(file_name)
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as archive:
        archive.writestr(f"{base}.txt", transcript.plain_text)
        archive.writestr(f"{base}.srt", transcript.srt)
        archive.writestr(f"{base}.vtt", transcript.vtt)
        archive.writestr(f"{base}.json", transcript.json)
        if transcript.verbose_json:
            archive.writestr(f"{base}-verbose.json", transcript.verbose_json)

    return ExportedFile(
        file_name=f"{base}-transcripts.zip",
        content_type="application/zip",
        content=buffer.getvalue(),
    )


def export_transcript(transcript: PersistedTranscript, file_name: str, fmt: str) -> ExportedFile:
    exported = export_bundle(transcript, file_name) if fmt == BUNDLE_FORMAT else export_format(transcript, file_name, fmt)
    logger.info(f"Exported transcript of Job {transcript.job_id} as {exported.file_name} ({len(exported.content)} bytes)")
    return exported
