import pytest

from shared import asr_gemini
from shared.asr_gemini import TRANSCRIPTION_PROMPT, GeminiASRClient
from shared.schemas import SEGMENT_RESPONSE_SCHEMA


class _FakeResponse:
    def __init__(self, text):
        self.text = text


class _FakeModel:
    instances = []

    def __init__(self, name):
        self.name = name
        self.calls = []
        _FakeModel.instances.append(self)

    def generate_content(self, contents, generation_config=None):
        self.calls.append((contents, generation_config))
        return _FakeResponse('  [{"start": "00:00:00,000", "end": "00:00:01,000", "text": "hi"}]\n')


@pytest.fixture
def fake_vertex(monkeypatch):
    inits = []
    _FakeModel.instances = []
    monkeypatch.setattr(asr_gemini.vertexai, "init", lambda **kw: inits.append(kw))
    monkeypatch.setattr(asr_gemini, "GenerativeModel", _FakeModel)
    monkeypatch.setattr(asr_gemini, "GenerationConfig", lambda **kw: kw)
    monkeypatch.setattr(asr_gemini.Part, "from_data", staticmethod(lambda data, mime_type: ("part", data, mime_type)))
    return inits


def test_transcribe_sends_prompt_audio_and_schema(fake_vertex) -> None:
    client = GeminiASRClient(api_key="secret", model_name="gemini-test")

    raw = client.transcribe(b"\x00\x01", "audio/wav")

    assert raw.startswith("[") and raw.endswith("]")
    assert fake_vertex == [{"api_key": "secret"}]
    model = _FakeModel.instances[0]
    assert model.name == "gemini-test"
    contents, config = model.calls[0]
    assert contents == [TRANSCRIPTION_PROMPT, ("part", b"\x00\x01", "audio/wav")]
    assert config == {"response_mime_type": "application/json", "response_schema": SEGMENT_RESPONSE_SCHEMA}


def test_prompt_asks_for_short_segments() -> None:
    assert "HH:MM:SS,mmm" in TRANSCRIPTION_PROMPT
    assert "conjunctions" in TRANSCRIPTION_PROMPT
    assert "prepositions" in TRANSCRIPTION_PROMPT
    assert "valid JSON array" in TRANSCRIPTION_PROMPT
