"""
Subtitle transcription API.

POST /api/generate takes {"mimeType": ..., "data": <base64>} and returns a
JSON array of {"start", "end", "text"} subtitle segments produced by Gemini.
"""
from __future__ import annotations
import asyncio
import base64
import binascii
import json
import logging
import os
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from functools import lru_cache
from typing import Set

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.asr_base import ASRClient
from shared.asr_gemini import GeminiASRClient
from shared.config import get_api_key, get_config
from shared.errors import MethodError, TranscriptionError, UpstreamError, ValidationError
from shared.schemas import TranscriptionRequest, parse_segments, segments_to_json

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Subtitle Transcription API")

MISSING_FIELDS_MESSAGE = "Missing mimeType or data in request body."


def get_asr(api_key: str) -> ASRClient:
    return GeminiASRClient(api_key=api_key, model_name=get_config().GENERATION_MODEL)


# Model calls run in their own bounded pool; calls that outlive the time
# limit keep a worker until the SDK returns.
_stalled_lock = threading.Lock()
_stalled: Set[Future] = set()


@lru_cache(maxsize=1)
def _model_pool() -> ThreadPoolExecutor:
    return ThreadPoolExecutor(max_workers=get_config().MODEL_WORKERS, thread_name_prefix="model-call")


def _forget_stalled(fut: Future) -> None:
    with _stalled_lock:
        _stalled.discard(fut)
    logger.info("Stalled model call finished; %d still running", stalled_calls())


def stalled_calls() -> int:
    with _stalled_lock:
        return len(_stalled)


def _call_model(asr: ASRClient, audio: bytes, mime_type: str) -> str:
    # Errors raised by the model (including its own TimeoutError) are
    # reported as call failures, never as the request time limit.
    try:
        return asr.transcribe(audio, mime_type)
    except Exception as e:
        logger.exception("API call failed")
        raise UpstreamError("Failed to process file with AI model.", details=str(e) or type(e).__name__)


@app.exception_handler(TranscriptionError)
async def transcription_error_handler(request: Request, exc: TranscriptionError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # Router-level errors (405, 404) share the {"error": ...} envelope
    if exc.status_code == MethodError.status_code:
        err = MethodError(exc.detail)
        return JSONResponse(status_code=err.status_code, content=err.to_dict(), headers=exc.headers)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


def _decode_audio(data: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Request data is not valid base64.")


async def _read_request(request: Request) -> TranscriptionRequest:
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Request body must be valid JSON.")
    if not isinstance(payload, dict):
        raise ValidationError(MISSING_FIELDS_MESSAGE)

    mime_type, data = payload.get("mimeType"), payload.get("data")
    if not isinstance(mime_type, str) or not isinstance(data, str):
        raise ValidationError(MISSING_FIELDS_MESSAGE)
    req = TranscriptionRequest(mimeType=mime_type, data=data)
    if not req.is_complete():
        raise ValidationError(MISSING_FIELDS_MESSAGE)
    return req


@app.post("/api/generate")
async def generate(request: Request):
    """
    Transcribe an uploaded audio file into subtitle segments.

    Errors are returned as {"error": ..., "details": ...}:
        400 - missing/invalid mimeType or data
        500 - API_KEY not configured, model failure, timeout or invalid model output
    """
    api_key = get_api_key()
    req = await _read_request(request)
    audio = _decode_audio(req.data)
    logger.info("Transcription request: mimeType=%s, %d bytes", req.mimeType, len(audio))

    cfg = get_config()
    asr = get_asr(api_key)
    started = time.monotonic()
    fut = _model_pool().submit(_call_model, asr, audio, req.mimeType)
    try:
        raw = await asyncio.wait_for(asyncio.wrap_future(fut), timeout=cfg.MAX_DURATION_SEC)
    except UpstreamError:
        raise
    except asyncio.TimeoutError:
        if not fut.done():
            with _stalled_lock:
                _stalled.add(fut)
            fut.add_done_callback(_forget_stalled)
        logger.error("Model call exceeded %gs; %d stalled call(s) still running", cfg.MAX_DURATION_SEC, stalled_calls())
        raise UpstreamError("Transcription timed out.", details=f"Model call exceeded {cfg.MAX_DURATION_SEC:g} seconds.")
    except Exception as e:
        logger.exception("Model call could not be run")
        raise UpstreamError("Failed to process file with AI model.", details=str(e) or type(e).__name__)

    logger.info("Model responded in %.2fs (%d chars)", time.monotonic() - started, len(raw))

    try:
        segments = parse_segments(raw)
    except ValueError as e:
        logger.error("Invalid model output: %s", e)
        raise UpstreamError("Model returned an invalid transcription.", details=str(e))

    logger.info("Returning %d segments", len(segments))
    return Response(content=segments_to_json(segments), media_type="application/json")


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "transcribe-api", "config": get_config().safe_dict()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", 8080)))
