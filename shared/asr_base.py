from abc import ABC, abstractmethod


class ASRClient(ABC):
    @abstractmethod
    def transcribe(self, audio: bytes, mime_type: str) -> str:
        """
        Returns the raw JSON text of a segment list:
        [
          {"start": "00:00:01,200", "end": "00:00:03,500", "text": "..."},
          ...
        ]
        audio: the uploaded file bytes, already base64-decoded
        """
        raise NotImplementedError
