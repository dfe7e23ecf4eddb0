"""
Gemini transcription client.

Sends the uploaded audio inline together with a fixed instruction prompt and
a structured-output schema, and returns the model's JSON text untouched.
Validation of that text happens in the API layer.
"""
from __future__ import annotations
import logging

import vertexai
from vertexai.generative_models import GenerationConfig, GenerativeModel, Part

from .asr_base import ASRClient
from .schemas import SEGMENT_RESPONSE_SCHEMA

logger = logging.getLogger(__name__)

TRANSCRIPTION_PROMPT = """You are an expert audio transcriptionist specializing in creating readable subtitles. Your task is to transcribe the provided audio file with extreme accuracy and format it into subtitle segments.

Generate a list of subtitle segments. Each segment must contain:
1. A "start" timestamp in "HH:MM:SS,mmm" format.
2. An "end" timestamp in "HH:MM:SS,mmm" format.
3. The "text" of the transcription for that segment.

**Important rules for the "text" field to ensure readability:**
- Keep subtitle lines short, ideally one or two phrases per segment.
- Avoid creating very long, multi-line text blocks within a single subtitle segment.
- Break lines at natural pause points in the speech.
- It is crucial to split longer sentences into smaller, coherent parts. Prefer to break lines before conjunctions (e.g., "and", "but", "or"), prepositions (e.g., "in", "on", "with"), or at the end of clauses.
- Each subtitle segment should represent a short, digestible piece of information for the viewer.

Ensure the timestamps are precise and the text is a faithful transcription of the speech in the audio.
The output must be a valid JSON array matching the provided schema. Do not include any other text or explanations."""


class GeminiASRClient(ASRClient):
    def __init__(self, api_key: str, model_name: str = "gemini-2.5-flash"):
        self.api_key = api_key
        self.model_name = model_name

    def _ensure_vertex(self):
        # Express mode: the API key alone authenticates, no project/location
        vertexai.init(api_key=self.api_key)

    def transcribe(self, audio: bytes, mime_type: str) -> str:
        self._ensure_vertex()
        model = GenerativeModel(self.model_name)

        generation_config = GenerationConfig(
            response_mime_type="application/json",
            response_schema=SEGMENT_RESPONSE_SCHEMA,
        )
        audio_part = Part.from_data(data=audio, mime_type=mime_type)

        logger.info("Calling %s with %d bytes of %s", self.model_name, len(audio), mime_type)
        resp = model.generate_content(
            [TRANSCRIPTION_PROMPT, audio_part],
            generation_config=generation_config,
        )
        return (resp.text or "").strip()
