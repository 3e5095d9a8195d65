# File: scribo/core/config/settings.py

import os
import shutil
from pathlib import Path
from typing import Optional

MEGABYTE = 1024 * 1024


class Settings:
    # --- Paths ---
    # scribo/core/config/settings.py -> scribo/core/config -> scribo/core -> scribo -> ROOT
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent.parent
    DATA_DIR: Path = Path(os.getenv("SCRIBO_DATA_DIR", str(BASE_DIR / "data")))
    MEDIA_BUCKET_DIR: Path = Path(os.getenv("MEDIA_BUCKET_DIR", str(DATA_DIR / "media-uploads")))
    SCRATCH_DIR: Path = Path(os.getenv("SCRATCH_DIR", str(DATA_DIR / "scratch")))

    # --- Database ---
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "password")
    POSTGRES_SERVER: str = os.getenv("POSTGRES_SERVER", "localhost")
    POSTGRES_PORT: str = os.getenv("POSTGRES_PORT", "5432")
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "scribo_db")

    @property
    def DATABASE_URL(self) -> str:
        # SQLite only when explicitly requested (test runs), Postgres otherwise.
        if os.getenv("USE_SQLITE", "false").lower() == "true":
            return os.getenv("SQLITE_URL", "sqlite:///./test_scribo.db")

        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # --- External Tools ---
    FFMPEG_BINARY: str = os.getenv("FFMPEG_BINARY_PATH", shutil.which("ffmpeg") or "ffmpeg")
    FFPROBE_BINARY: str = os.getenv("FFPROBE_BINARY_PATH", shutil.which("ffprobe") or "ffprobe")

    # --- Object Storage ---
    # "local" writes under MEDIA_BUCKET_DIR, "gcs" uses a Cloud Storage bucket.
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "local")
    STORAGE_BUCKET: str = os.getenv("STORAGE_BUCKET", "media-uploads")

    # --- Speech-to-Text ---
    WHISPER_MODEL_NAME: str = os.getenv("WHISPER_MODEL_NAME", "large-v3")
    WHISPER_DEVICE: str = "cuda" if os.getenv("USE_CUDA", "true").lower() == "true" else "cpu"

    # --- Audio Normalization Profile ---
    AUDIO_BITRATE_KBPS: int = 128
    AUDIO_SAMPLE_RATE_HZ: int = 16000
    AUDIO_CHANNELS: int = 1

    # --- Routing & Chunking ---
    # 20MB keeps each request safely under the provider's 25MB upload limit.
    MAX_DIRECT_TRANSCRIPTION_BYTES: int = int(os.getenv("MAX_DIRECT_TRANSCRIPTION_BYTES", 20 * MEGABYTE))
    MAX_EXTRACTED_AUDIO_BYTES: int = int(os.getenv("MAX_EXTRACTED_AUDIO_BYTES", 500 * MEGABYTE))
    MIN_EXTRACTED_AUDIO_BYTES: int = 1000
    CHUNK_DURATION_SECONDS: int = int(os.getenv("CHUNK_DURATION_SECONDS", 600))
    MAX_PARALLEL_CHUNKS: Optional[int] = int(os.environ["MAX_PARALLEL_CHUNKS"]) if os.getenv("MAX_PARALLEL_CHUNKS") else None

    # --- Job Listing ---
    JOBS_PER_PAGE: int = 20

    def ensure_dirs(self):
        """Creates necessary data directories if they don't exist."""
        self.DATA_DIR.mkdir(parents=True, exist_ok=True)
        self.MEDIA_BUCKET_DIR.mkdir(parents=True, exist_ok=True)
        self.SCRATCH_DIR.mkdir(parents=True, exist_ok=True)


settings = Settings()
