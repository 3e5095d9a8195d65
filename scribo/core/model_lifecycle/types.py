# File: scribo/core/model_lifecycle/types.py

from enum import Enum


class ModelType(str, Enum):
    WHISPER = "whisper"
