# Storage layout, all scoped by user then job:
#   {user_id}/extracted/{job_id}.mp3     normalized audio
#   {user_id}/{job_id}/chunk_{i}.mp3     10-minute chunks
from uuid import UUID

AUDIO_CONTENT_TYPE = "audio/mpeg"


def extracted_audio_path(user_id: UUID, job_id: UUID) -> str:
    return f"{user_id}/extracted/{job_id}.mp3"


def job_prefix(user_id: UUID, job_id: UUID) -> str:
    return f"{user_id}/{job_id}/"


def chunk_path(user_id: UUID, job_id: UUID, index: int) -> str:
    return f"{job_prefix(user_id, job_id)}chunk_{index}.mp3"
