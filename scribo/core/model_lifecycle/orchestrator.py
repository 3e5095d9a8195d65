# File: scribo/core/model_lifecycle/orchestrator.py

import gc
import logging
from contextlib import contextmanager
from threading import Lock, RLock
from typing import Any, Callable, Iterator

import torch

from .types import ModelType

logger = logging.getLogger(__name__)


class ModelOrchestrator:
    """
    Singleton Resource Manager.
    Keeps exactly one speech model resident and lets one caller at a time run it.

    Chunk workers transcribe in parallel threads, but a single in-process
    model cannot be driven concurrently: inference is serialized here while
    download/upload/merge work around it stays parallel.
    """
    _instance = None
    _lock = Lock()

    def __new__(cls):
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._current_key = None
                cls._instance._resident = None
                cls._instance._inference_lock = RLock()
        return cls._instance

    def request_model(self, model_type: ModelType, variant: str, loader_func: Callable[[], Any]) -> Any:
        """
        Returns the resident model, loading it if a different one (or none) is loaded.

        Args:
            model_type: The enum identifier for the model family.
            variant: Size/checkpoint name, e.g. "large-v3".
            loader_func: Returns the loaded model object. Only called on a miss.
        """
        key = (model_type, variant)
        with self._lock:
            if self._current_key == key and self._resident is not None:
                return self._resident

            if self._resident is not None:
                self._unload()

            logger.info(f"Orchestrator: Loading {model_type.value} ({variant})...")
            try:
                self._resident = loader_func()
                self._current_key = key
                return self._resident
            except Exception as e:
                logger.error(f"Failed to load {model_type.value} ({variant}): {e}")
                raise

    @contextmanager
    def exclusive_inference(self) -> Iterator[None]:
        with self._inference_lock:
            yield

    def release(self) -> None:
        with self._lock:
            if self._resident is not None:
                self._unload()

    def _unload(self):
        """Drops the resident model and hands its memory back to the allocator."""
        if self._current_key:
            logger.info(f"Orchestrator: Unloading {self._current_key[0].value} ({self._current_key[1]})...")

        self._resident = None
        self._current_key = None

        gc.collect()
        if torch.cuda.is_available():
            torch.cuda.empty_cache()

    def get_current_model_type(self):
        """Family of the resident model, or None when nothing is loaded."""
        return self._current_key[0] if self._current_key else None
