# File: tests/conftest.py

import json
import os
import sys
import logging
import tempfile
from pathlib import Path
from threading import Lock

import pytest
import sqlalchemy
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy_utils import database_exists, create_database

# 1. Test mode must be chosen before any scribo module reads its settings
os.environ.setdefault("USE_SQLITE", "true")
os.environ.setdefault("SQLITE_URL", f"sqlite:///{Path(tempfile.gettempdir()) / 'scribo_test.db'}")
os.environ.setdefault("USE_CUDA", "false")

# 2. Add project root to path
sys.path.append(os.getcwd())

# 3. Import Settings
from scribo.core.config.settings import Settings, settings
from scribo.core.enums import TimestampGranularity
from scribo.core.errors import StorageError, TranscriptionProviderError
from scribo.features.storage.domain.interfaces import IObjectStorage
from scribo.features.audio_extraction.domain.interfaces import IAudioProcessor
from scribo.features.audio_extraction.domain.models import AudioMetadata
from scribo.features.transcription.domain.interfaces import ISpeechToText
from scribo.features.transcription.domain.models import TranscriptionResult, TranscriptionSegment, WordTiming

# 4. Create Test Engine
TEST_ENGINE = create_engine(settings.DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=TEST_ENGINE)


@pytest.fixture(scope="session", autouse=True)
def global_setup():
    """
    Runs once per test session.
    Ensures DB exists and every model is registered before create_all.
    """
    logging.getLogger("scribo").setLevel(logging.DEBUG)

    if not database_exists(TEST_ENGINE.url):
        create_database(TEST_ENGINE.url)

    from scribo.core.database.base import Base
    import scribo.core.jobs.data.sql_models
    import scribo.features.transcription.data.sql_models

    Base.metadata.create_all(bind=TEST_ENGINE)

    yield


@pytest.fixture(scope="function", autouse=True)
def clean_db(global_setup):
    """
    Runs before EVERY test.
    Detects DB type and cleans tables appropriately.
    """
    from scribo.core.database.base import Base

    Base.metadata.create_all(bind=TEST_ENGINE)

    with TEST_ENGINE.connect() as conn:
        trans = conn.begin()
        is_sqlite = "sqlite" in str(TEST_ENGINE.url)
        table_names = sqlalchemy.inspect(TEST_ENGINE).get_table_names()

        if table_names:
            if is_sqlite:
                conn.execute(text("PRAGMA foreign_keys = OFF;"))
                for table in table_names:
                    conn.execute(text(f'DELETE FROM "{table}";'))
                conn.execute(text("PRAGMA foreign_keys = ON;"))
            else:
                conn.execute(text("SET session_replication_role = 'replica';"))
                for table in table_names:
                    conn.execute(text(f'TRUNCATE TABLE "{table}" CASCADE;'))
                conn.execute(text("SET session_replication_role = 'origin';"))

        trans.commit()

    yield


@pytest.fixture(scope="function")
def db_session():
    """
    Provides a session for the test to use.
    """
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def test_settings(tmp_path):
    """Settings with private scratch/bucket dirs and small routing limits."""
    cfg = Settings()
    cfg.SCRATCH_DIR = tmp_path / "scratch"
    cfg.MEDIA_BUCKET_DIR = tmp_path / "bucket"
    cfg.MAX_DIRECT_TRANSCRIPTION_BYTES = 20_000
    cfg.MAX_EXTRACTED_AUDIO_BYTES = 500_000
    cfg.MAX_PARALLEL_CHUNKS = None
    return cfg


# --- Fakes ---
# Audio "files" produced by FakeAudioProcessor are a JSON header
# ({"start": s, "duration": d}) padded with spaces, so the fake
# speech-to-text engine can tell which slice of the recording it got.

def _write_fake_audio(path: Path, start: float, duration: float, size_bytes: int) -> None:
    header = json.dumps({"start": start, "duration": duration}).encode()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(header + b" " * max(0, size_bytes - len(header)))


def _read_fake_audio(path) -> dict:
    return json.loads(Path(path).read_bytes().decode().strip())


class InMemoryStorage(IObjectStorage):
    def __init__(self):
        self.objects = {}
        self.fail_downloads = set()
        self._lock = Lock()

    def upload(self, path, data, content_type=None):
        with self._lock:
            self.objects[path] = bytes(data)

    def download(self, path):
        if path in self.fail_downloads:
            raise StorageError(f"Failed to download {path}: simulated outage")
        with self._lock:
            if path not in self.objects:
                raise StorageError(f"Object not found: {path}")
            return self.objects[path]

    def exists(self, path):
        return path in self.objects

    def delete(self, path):
        with self._lock:
            return self.objects.pop(path, None) is not None

    def delete_prefix(self, prefix):
        with self._lock:
            doomed = [k for k in self.objects if k.startswith(prefix)]
            for key in doomed:
                del self.objects[key]
            return len(doomed)


class FakeAudioProcessor(IAudioProcessor):
    """Pretends to be ffmpeg: writes sized placeholder files describing the cut."""

    def __init__(self, duration_seconds=90.0, output_bytes=5_000):
        self.duration_seconds = duration_seconds
        self.output_bytes = output_bytes
        self.cuts = []

    def normalize(self, input_path, output_path, config):
        _write_fake_audio(output_path, 0, self.duration_seconds, self.output_bytes)

    def probe(self, audio_path):
        return AudioMetadata(
            duration_seconds=self.duration_seconds,
            format="mp3",
            bitrate_kbps=128,
            sample_rate_hz=16000,
            channels=1,
        )

    def cut_segment(self, input_path, output_path, start_seconds, duration_seconds, config):
        self.cuts.append((start_seconds, duration_seconds))
        actual = duration_seconds if duration_seconds is not None else self.duration_seconds - start_seconds
        _write_fake_audio(output_path, start_seconds, actual, 2_000)


class FakeSpeechToText(ISpeechToText):
    """
    One segment per `segment_seconds` of the slice it is given, timed
    relative to the slice (like a real provider).
    """

    def __init__(self, segment_seconds=100.0, language="en"):
        self.segment_seconds = segment_seconds
        self.language = language
        self.fail_on_starts = set()
        self.calls = []
        self._lock = Lock()

    def transcribe(self, audio_path, language, granularity):
        info = _read_fake_audio(audio_path)
        with self._lock:
            self.calls.append((info["start"], language, granularity))
        if info["start"] in self.fail_on_starts:
            raise TranscriptionProviderError(f"Provider rejected chunk at {info['start']}s")

        duration = info["duration"]
        segments, words = [], []
        t = 0.0
        while t < duration:
            end = min(t + self.segment_seconds, duration)
            label = f"at {info['start'] + t:.0f}"
            segments.append(TranscriptionSegment(id=len(segments), start=t, end=end,
                                                 text=f" Speech {label}. ", extras={"seek": int(t * 100)}))
            words.append(WordTiming(word="Speech", start=t, end=t + 0.5))
            t = end

        return TranscriptionResult(
            language=self.language,
            duration=duration,
            text=" ".join(s.text.strip() for s in segments),
            segments=segments,
            words=words if granularity == TimestampGranularity.WORD else None,
        )


@pytest.fixture
def memory_storage():
    return InMemoryStorage()


@pytest.fixture
def fake_audio():
    return FakeAudioProcessor()


@pytest.fixture
def fake_stt():
    return FakeSpeechToText()


@pytest.fixture
def pipeline_context(memory_storage, fake_audio, fake_stt, test_settings):
    from scribo.core.jobs.data.repository import SqlJobRepo
    from scribo.core.jobs.service.context import PipelineContext
    from scribo.features.transcription.data.repository import SqlTranscriptRepo

    return PipelineContext(
        storage=memory_storage,
        audio_processor=fake_audio,
        speech_to_text=fake_stt,
        transcript_repo=SqlTranscriptRepo(),
        job_repo=SqlJobRepo(),
        config=test_settings,
    )
