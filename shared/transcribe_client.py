from __future__ import annotations
import base64
import logging
import os
from typing import BinaryIO, List, Optional, Union

import requests

from .config import get_config
from .errors import ClientNetworkError
from .schemas import SubtitleSegment, TranscriptionResult

logger = logging.getLogger(__name__)

_MIME_BY_EXT = {
    ".wav": "audio/wav",
    ".mp3": "audio/mpeg",
    ".m4a": "audio/mp4",
    ".aac": "audio/aac",
    ".ogg": "audio/ogg",
    ".oga": "audio/ogg",
    ".opus": "audio/opus",
    ".flac": "audio/flac",
    ".webm": "audio/webm",
    ".aiff": "audio/aiff",
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".avi": "video/x-msvideo",
}


def guess_mime(name: str) -> str:
    ext = os.path.splitext(name.lower())[1]
    return _MIME_BY_EXT.get(ext, "application/octet-stream")


def is_data_url(value) -> bool:
    return isinstance(value, str) and value.startswith("data:") and "," in value


def strip_data_url(encoded: str) -> str:
    """Drop a "data:<mime>;base64," prefix, keeping only the payload."""
    if is_data_url(encoded):
        return encoded.split(",", 1)[1]
    return encoded


def data_url_mime(data_url: str) -> Optional[str]:
    # data:audio/wav;base64,... -> audio/wav
    header = data_url.split(",", 1)[0][len("data:"):]
    mime = header.split(";", 1)[0]
    return mime or None


def file_to_base64(file: Union[str, os.PathLike, BinaryIO]) -> str:
    if isinstance(file, (str, os.PathLike)):
        with open(file, "rb") as fh:
            raw = fh.read()
    else:
        raw = file.read()
    return base64.b64encode(raw).decode("ascii")


def build_payload(file: Union[str, os.PathLike, BinaryIO], mime_type: Optional[str] = None) -> dict:
    """Build the {mimeType, data} body for one upload.

    file may also be an already-encoded data URL ("data:audio/wav;base64,...").
    """
    if is_data_url(file):
        return {"mimeType": mime_type or data_url_mime(file) or "application/octet-stream", "data": strip_data_url(file)}
    if mime_type is None:
        name = os.fspath(file) if isinstance(file, (str, os.PathLike)) else getattr(file, "name", "")
        mime_type = guess_mime(str(name))
    return {"mimeType": mime_type, "data": file_to_base64(file)}


def _post(payload: dict, endpoint: str, session, timeout: float) -> List[SubtitleSegment]:
    poster = session or requests
    resp = poster.post(endpoint, json=payload, headers={"Content-Type": "application/json"}, timeout=timeout)
    result = resp.json()

    if not 200 <= resp.status_code < 300:
        # Use the error message from the server if available
        message = result.get("error") if isinstance(result, dict) else None
        raise RuntimeError(message or f"Request failed with status {resp.status_code}")

    return TranscriptionResult.validate_python(result)


def generate_transcription(
    file: Union[str, os.PathLike, BinaryIO],
    mime_type: Optional[str] = None,
    endpoint: Optional[str] = None,
    session=None,
    timeout: float = 120.0,
) -> List[SubtitleSegment]:
    """
    Upload an audio file to the transcription endpoint.

    Args:
        file: path, binary file object or data URL
        mime_type: overrides detection from the file name
        endpoint: defaults to TRANSCRIBE_ENDPOINT
        session: anything with a requests-style post(); defaults to requests

    Raises:
        ClientNetworkError wrapping the server message, network or parse failure
    """
    try:
        endpoint = endpoint or get_config().TRANSCRIBE_ENDPOINT
        payload = build_payload(file, mime_type)
        return _post(payload, endpoint, session, timeout)
    except Exception as e:
        logger.error("Transcription generation failed: %s", e)
        # Network errors, JSON parse errors and server messages all end up here
        cause = str(e) or type(e).__name__
        raise ClientNetworkError(f"Failed to generate transcription. Please try again. ({cause})", details=cause) from e
