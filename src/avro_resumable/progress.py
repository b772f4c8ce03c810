"""Offset checkpoint persistence (save/load job progress to disk)."""

from __future__ import annotations

import json
from pathlib import Path

from .models import JobProgress

# Progress file format version
FORMAT_VERSION = "1.0"


def save_progress(progress_path: Path, jobs: dict[str, JobProgress]) -> None:
    """Write every job's checkpoint to disk as compact JSON.

    Args:
        progress_path: Where to save the progress file
        jobs: Dictionary mapping job_id to JobProgress
    """
    data = {
        "format_version": FORMAT_VERSION,
        "jobs": {
            job_id: {
                "offset": job.offset,
                "records_read": job.records_read,
                "file_size": job.file_size,
                "file_mtime": job.file_mtime,
                "status": job.status,
                "created_at": job.created_at,
                "last_checkpoint_at": job.last_checkpoint_at,
                "completed_at": job.completed_at,
            }
            for job_id, job in jobs.items()
        },
    }

    with open(progress_path, "w", encoding="utf-8") as f:
        json.dump(data, f, separators=(",", ":"))


def load_progress(progress_path: Path) -> dict[str, JobProgress] | None:
    """Load job checkpoints from disk.

    Returns:
        Dictionary mapping job_id to JobProgress, or None if the file is
        missing, unreadable or written by another format version
    """
    try:
        with open(progress_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        if data.get("format_version") != FORMAT_VERSION:
            return None

        return {
            job_id: JobProgress(
                job_id=job_id,
                offset=entry["offset"],
                records_read=entry["records_read"],
                file_size=entry["file_size"],
                file_mtime=entry["file_mtime"],
                status=entry["status"],
                created_at=entry["created_at"],
                last_checkpoint_at=entry["last_checkpoint_at"],
                completed_at=entry.get("completed_at"),
            )
            for job_id, entry in data.get("jobs", {}).items()
        }

    except (json.JSONDecodeError, KeyError, TypeError, AttributeError, FileNotFoundError):
        return None


def update_job_progress(progress_path: Path, job: JobProgress) -> None:
    """Replace one job's checkpoint, keeping the others."""
    jobs = load_progress(progress_path) or {}
    jobs[job.job_id] = job
    save_progress(progress_path, jobs)


def delete_job_progress(progress_path: Path, job_id: str) -> bool:
    """Delete a job's checkpoint.

    Returns:
        True if the job was found and deleted, False otherwise
    """
    jobs = load_progress(progress_path)
    if jobs is None or job_id not in jobs:
        return False

    del jobs[job_id]
    save_progress(progress_path, jobs)
    return True
