import json
import uuid

import pytest

from scribo.core.enums import FileType, JobStatus, PipelineStage, TimestampGranularity
from scribo.core.errors import JobNotFoundError, StorageError
from scribo.core.jobs.data.repository import SqlJobRepo
from scribo.core.jobs.domain.models import JobSubmission
from scribo.core.jobs.service.manager import JobManager
from scribo.features.storage.domain.paths import chunk_path, extracted_audio_path

USER = uuid.UUID("bbbbbbbb-0000-0000-0000-000000000002")


class RecordingJobRepo(SqlJobRepo):
    """Keeps every progress value that actually reached the status record."""

    def __init__(self):
        self.history = []

    def update_progress(self, job_id, progress, step):
        applied = super().update_progress(job_id, progress, step)
        if applied:
            self.history.append((progress, step))
        return applied

    def mark_completed(self, job_id, detected_language=None):
        self.history.append(("completed", self.get_job(job_id).progress))
        return super().mark_completed(job_id, detected_language)


@pytest.fixture
def recording_context(pipeline_context):
    pipeline_context.job_repo = RecordingJobRepo()
    return pipeline_context


def submit(manager, storage, file_name="lecture.mp4", **overrides):
    file_url = f"{USER}/uploads/{file_name}"
    storage.upload(file_url, b"\x00\x00\x00\x18ftypmp42 fake upload")
    data = dict(
        user_id=USER,
        file_name=file_name,
        file_url=file_url,
        file_type=FileType.VIDEO,
        file_size_bytes=24,
    )
    data.update(overrides)
    return manager.submit_job(JobSubmission(**data))


def test_short_file_goes_direct(recording_context, memory_storage, fake_audio, fake_stt):
    manager = JobManager(recording_context)
    job_id = submit(manager, memory_storage)

    job = manager.run_job(job_id)

    assert job.status == JobStatus.COMPLETED, job.error_message
    assert job.progress == 100
    assert job.current_step == "Transcription complete"
    assert job.duration_seconds == 90
    assert job.detected_language == "en"
    assert fake_audio.cuts == []
    assert len(fake_stt.calls) == 1
    assert memory_storage.exists(extracted_audio_path(USER, job_id))
    assert not memory_storage.exists(chunk_path(USER, job_id, 0))

    transcript = manager.get_transcript(job_id)
    assert transcript.duration_seconds == 90
    assert transcript.word_timestamps is None
    assert transcript.srt.startswith("1\n00:00:00,000 --> 00:01:30,000\nSpeech at 0.\n")
    assert transcript.vtt.startswith("WEBVTT\n")


def test_twenty_five_minute_recording_is_chunked(recording_context, memory_storage, fake_audio, fake_stt):
    fake_audio.duration_seconds = 1500.0
    fake_audio.output_bytes = 30_000  # over the 20_000 byte direct limit of test_settings
    manager = JobManager(recording_context)
    job_id = submit(manager, memory_storage, language="en", timestamp_granularity="word")

    job = manager.run_job(job_id)

    assert job.status == JobStatus.COMPLETED, job.error_message
    assert fake_audio.cuts == [(0, 600), (600, 600), (1200, None)]
    assert sorted(start for start, _, _ in fake_stt.calls) == [0, 600, 1200]
    assert all(lang == "en" and gran == TimestampGranularity.WORD for _, lang, gran in fake_stt.calls)
    for i in range(3):
        assert memory_storage.exists(chunk_path(USER, job_id, i))

    transcript = manager.get_transcript(job_id)
    data = json.loads(transcript.json)
    segments = data["segments"]
    assert [s["id"] for s in segments] == list(range(len(segments)))
    starts = [s["start"] for s in segments]
    assert starts == sorted(starts)
    assert abs(segments[-1]["end"] - 1500) <= 1
    assert transcript.duration_seconds == 1500
    assert segments[6]["start"] == 600  # first segment of the second chunk, offset applied
    assert data["text"].startswith("Speech at 0. Speech at 100.")

    words = transcript.word_timestamps
    assert words is not None
    assert [w["start"] for w in words][:7:6] == [0, 600]


def test_progress_is_monotonic_and_complete_is_last(recording_context, memory_storage, fake_audio):
    fake_audio.duration_seconds = 1500.0
    fake_audio.output_bytes = 30_000
    manager = JobManager(recording_context)
    job_id = submit(manager, memory_storage)

    manager.run_job(job_id)

    history = recording_context.job_repo.history
    values = [p for p, *_ in history if p != "completed"]
    assert values == sorted(values)
    assert values[:4] == [10, 15, 25, 30]
    assert values[4:8] == [32, 33, 34, 35]
    assert values[-5:] == [90, 92, 94, 98, 100]
    assert history[-1] == ("completed", 100)

    chunk_steps = [step for _, step in history if isinstance(step, str) and step.startswith("Transcribed ")]
    assert chunk_steps == ["Transcribed 1/3 chunks", "Transcribed 2/3 chunks", "Transcribed 3/3 chunks"]
    assert (53, "Transcribed 1/3 chunks") in history
    assert (72, "Transcribed 2/3 chunks") in history


def test_one_failed_chunk_fails_the_job(recording_context, memory_storage, fake_audio, fake_stt):
    fake_audio.duration_seconds = 1500.0
    fake_audio.output_bytes = 30_000
    fake_stt.fail_on_starts = {600}
    manager = JobManager(recording_context)
    job_id = submit(manager, memory_storage)

    job = manager.run_job(job_id)

    assert job.status == JobStatus.FAILED
    assert "Provider rejected chunk at 600s" in job.error_message
    assert job.current_step == "Transcription failed"
    # Every chunk still ran to completion
    assert len(fake_stt.calls) == 3
    assert manager.get_transcript(job_id) is None


def test_storage_outage_is_reported(recording_context, memory_storage):
    manager = JobManager(recording_context)
    job_id = submit(manager, memory_storage)
    memory_storage.fail_downloads.add(f"{USER}/uploads/lecture.mp4")

    job = manager.run_job(job_id)

    assert job.status == JobStatus.FAILED
    assert job.error_message == f"Failed to download {USER}/uploads/lecture.mp4: simulated outage"
    assert job.current_step == "Audio extraction failed"


def test_oversized_audio_is_rejected(recording_context, memory_storage, fake_audio, fake_stt):
    fake_audio.output_bytes = 600_000  # over the 500_000 byte ceiling of test_settings
    manager = JobManager(recording_context)
    job_id = submit(manager, memory_storage)

    job = manager.run_job(job_id)

    assert job.status == JobStatus.FAILED
    assert "exceeds our processing limit" in job.error_message
    assert fake_stt.calls == []


def test_cancelled_job_stops_at_next_stage(recording_context, memory_storage, fake_audio, fake_stt):
    fake_audio.duration_seconds = 1500.0
    fake_audio.output_bytes = 30_000
    manager = JobManager(recording_context)
    job_id = submit(manager, memory_storage)

    original_cut = fake_audio.cut_segment

    def cancel_while_cutting(*args, **kwargs):
        recording_context.job_repo.mark_cancelled(job_id)
        return original_cut(*args, **kwargs)

    fake_audio.cut_segment = cancel_while_cutting

    job = manager.run_job(job_id)

    assert job.status == JobStatus.CANCELLED
    assert job.error_message is None
    assert fake_stt.calls == []


def test_cancel_while_saving_transcript_stays_cancelled(recording_context, memory_storage, fake_audio):
    manager = JobManager(recording_context)
    job_id = submit(manager, memory_storage)
    transcripts = recording_context.transcript_repo
    original_save = transcripts.save

    def cancel_while_saving(transcript):
        saved = original_save(transcript)
        recording_context.job_repo.mark_cancelled(job_id)
        return saved

    transcripts.save = cancel_while_saving

    job = manager.run_job(job_id)

    assert job.status == JobStatus.CANCELLED
    assert job.completed_at is None
    assert job.progress < 100


def test_failed_stage_can_be_retried(recording_context, memory_storage, fake_audio, fake_stt):
    fake_audio.duration_seconds = 1500.0
    fake_audio.output_bytes = 30_000
    fake_stt.fail_on_starts = {1200}
    manager = JobManager(recording_context)
    job_id = submit(manager, memory_storage)
    assert manager.run_job(job_id).status == JobStatus.FAILED

    from scribo.core.jobs.data.sql_models import StageRunModel
    from scribo.core.database.connection import SessionLocal
    with SessionLocal() as db:
        run = db.query(StageRunModel).filter(
            StageRunModel.job_id == job_id,
            StageRunModel.stage == PipelineStage.TRANSCRIPTION
        ).one()
        run_id = run.id

    fake_stt.fail_on_starts = set()
    job = manager.retry_stage(run_id)

    assert job.status == JobStatus.COMPLETED, job.error_message
    assert job.error_message is None
    assert len(fake_audio.cuts) == 3  # chunks were not re-cut
    assert manager.get_transcript(job_id) is not None


def test_stage_retry_refused_once_job_moved_on(recording_context, memory_storage, fake_stt):
    fake_stt.fail_on_starts = {0}
    manager = JobManager(recording_context)
    job_id = submit(manager, memory_storage)
    manager.run_job(job_id)

    from scribo.core.jobs.data.sql_models import StageRunModel
    from scribo.core.database.connection import SessionLocal
    with SessionLocal() as db:
        run_id = db.query(StageRunModel).filter(
            StageRunModel.job_id == job_id,
            StageRunModel.stage == PipelineStage.TRANSCRIPTION
        ).one().id

    # Another worker picked the job up first
    assert recording_context.job_repo.reopen_failed(job_id) is True

    with pytest.raises(ValueError, match="no longer failed"):
        manager.retry_stage(run_id)


def test_finished_transcript_can_be_exported_by_its_owner(recording_context, memory_storage):
    manager = JobManager(recording_context)
    job_id = submit(manager, memory_storage, file_name="Team Sync.mp4")
    manager.run_job(job_id)

    srt = manager.export_transcript(job_id, USER, "srt")
    assert srt.file_name == "Team Sync.srt"
    assert srt.content.decode() == manager.get_transcript(job_id).srt

    bundle = manager.export_transcript(job_id, USER, "all")
    assert bundle.file_name == "Team Sync-transcripts.zip"

    with pytest.raises(JobNotFoundError, match="access denied"):
        manager.export_transcript(job_id, uuid.uuid4(), "srt")


def test_export_before_transcript_exists(recording_context, memory_storage):
    manager = JobManager(recording_context)
    job_id = submit(manager, memory_storage)

    with pytest.raises(JobNotFoundError, match="Transcript for Job"):
        manager.export_transcript(job_id, USER, "txt")


def leftover_scratch(context):
    scratch_dir = context.config.SCRATCH_DIR
    return sorted(p.name for p in scratch_dir.iterdir()) if scratch_dir.exists() else []


def test_scratch_is_empty_after_chunked_run(recording_context, memory_storage, fake_audio):
    fake_audio.duration_seconds = 1500.0
    fake_audio.output_bytes = 30_000
    normalized_to = []
    original_normalize = fake_audio.normalize

    def recording_normalize(input_path, output_path, config):
        normalized_to.append(output_path)
        return original_normalize(input_path, output_path, config)

    fake_audio.normalize = recording_normalize
    manager = JobManager(recording_context)
    job_id = submit(manager, memory_storage)

    assert manager.run_job(job_id).status == JobStatus.COMPLETED

    assert recording_context.config.SCRATCH_DIR in normalized_to[0].parents
    assert leftover_scratch(recording_context) == []


def test_scratch_is_empty_when_chunk_upload_fails(recording_context, memory_storage, fake_audio, fake_stt, monkeypatch):
    fake_audio.duration_seconds = 1500.0
    fake_audio.output_bytes = 30_000
    manager = JobManager(recording_context)
    job_id = submit(manager, memory_storage)
    broken_chunk = chunk_path(USER, job_id, 1)
    original_upload = memory_storage.upload

    def failing_upload(path, data, content_type=None):
        if path == broken_chunk:
            raise StorageError(f"Failed to upload {path}: bucket unavailable")
        return original_upload(path, data, content_type)

    monkeypatch.setattr(memory_storage, "upload", failing_upload)

    job = manager.run_job(job_id)

    assert job.status == JobStatus.FAILED
    assert job.current_step == "Chunking failed"
    assert "bucket unavailable" in job.error_message
    assert memory_storage.exists(chunk_path(USER, job_id, 0))
    assert fake_stt.calls == []
    assert leftover_scratch(recording_context) == []


def test_scratch_is_empty_when_provider_rejects_chunk(recording_context, memory_storage, fake_audio, fake_stt):
    fake_audio.duration_seconds = 1500.0
    fake_audio.output_bytes = 30_000
    fake_stt.fail_on_starts = {1200}
    manager = JobManager(recording_context)
    job_id = submit(manager, memory_storage)

    assert manager.run_job(job_id).status == JobStatus.FAILED

    assert len(fake_stt.calls) == 3
    assert leftover_scratch(recording_context) == []
