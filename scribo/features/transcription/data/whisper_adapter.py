# File: scribo/features/transcription/data/whisper_adapter.py
import whisper
import logging
from typing import Optional

from scribo.core.config.settings import settings
from scribo.core.enums import AUTO_LANGUAGE, TimestampGranularity
from scribo.core.errors import TranscriptionProviderError
from scribo.core.model_lifecycle.orchestrator import ModelOrchestrator
from scribo.core.model_lifecycle.types import ModelType
from ..domain.interfaces import ISpeechToText
from ..domain.models import TranscriptionResult, TranscriptionSegment, WordTiming

logger = logging.getLogger(__name__)

# Keys of a whisper segment that are promoted to first-class fields
_PROMOTED_KEYS = ("id", "start", "end", "text", "words")


class WhisperAdapter(ISpeechToText):
    def __init__(self, model_name: Optional[str] = None, device: Optional[str] = None):
        self.orchestrator = ModelOrchestrator()
        self.model_name = model_name or settings.WHISPER_MODEL_NAME
        self.device = device or settings.WHISPER_DEVICE

    def _load(self):
        def loader():
            logger.debug(f"Loading Whisper {self.model_name} on {self.device}...")
            return whisper.load_model(self.model_name, device=self.device)

        return self.orchestrator.request_model(ModelType.WHISPER, self.model_name, loader)

    def transcribe(self,
                   audio_path: str,
                   language: Optional[str],
                   granularity: TimestampGranularity) -> TranscriptionResult:
        want_words = granularity == TimestampGranularity.WORD
        lang = None if not language or language == AUTO_LANGUAGE else language
        logger.info(f"Requesting Whisper ({self.model_name}) for {audio_path} "
                    f"[language={lang or 'auto'}, words={want_words}]")

        try:
            model = self._load()
            audio = whisper.load_audio(str(audio_path))
            with self.orchestrator.exclusive_inference():
                result_raw = model.transcribe(
                    audio,
                    language=lang,
                    task="transcribe",
                    fp16=(self.device == "cuda"),
                    word_timestamps=want_words
                )
        except Exception as e:
            raise TranscriptionProviderError(f"Whisper transcription failed: {e}") from e

        segments = []
        words = [] if want_words else None
        for seg in result_raw.get("segments", []):
            segments.append(TranscriptionSegment(
                id=int(seg.get("id", len(segments))),
                start=float(seg["start"]),
                end=float(seg["end"]),
                text=seg.get("text", ""),
                extras={k: v for k, v in seg.items() if k not in _PROMOTED_KEYS}
            ))
            if want_words:
                for w in seg.get("words", []):
                    words.append(WordTiming(
                        word=w["word"].strip(),
                        start=float(w["start"]),
                        end=float(w["end"])
                    ))

        return TranscriptionResult(
            task="transcribe",
            language=result_raw.get("language") or lang or "unknown",
            duration=len(audio) / whisper.audio.SAMPLE_RATE,
            text=result_raw.get("text", ""),
            segments=segments,
            words=words
        )
