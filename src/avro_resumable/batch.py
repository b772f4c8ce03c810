"""Batch processing of Avro container files with persisted offsets."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Union

from .exceptions import StaleCheckpointError
from .models import EOF_OFFSET, INITIAL_OFFSET, JobProgress
from .parser import DEFAULT_MAX_RECORD_BYTES, AvroDataFileParser
from .progress import delete_job_progress, load_progress, update_job_progress


class BatchProcessor:
    """Resumable batch processor with checkpoint support.

    Stores the parser's offset token under a job id. If processing is
    interrupted, the next run replays to the last checkpoint and carries
    on with the following record.

    Example:
        >>> with BatchProcessor("events.avro", "my_job") as batch:
        ...     for record_id, record in batch:
        ...         process(record)
        ...         batch.checkpoint()
    """

    def __init__(
        self,
        file_path: Union[str, Path],
        job_id: str,
        progress_path: Union[str, Path, None] = None,
        *,
        max_record_bytes: int | None = DEFAULT_MAX_RECORD_BYTES,
        schema: str | None = None,
    ) -> None:
        """Create a batch processor.

        Args:
            file_path: Avro container file to process
            job_id: Unique identifier for this processing job
            progress_path: Where to store progress. Defaults to {file}.progress
            max_record_bytes: Byte budget passed to the parser; it bounds the
                container block holding each record
            schema: Optional reader schema JSON passed to the parser
        """
        self._file_path = Path(file_path)
        self._job_id = job_id
        self._progress_path = (
            Path(progress_path) if progress_path else self._file_path.with_suffix(".progress")
        )
        self._max_record_bytes = max_record_bytes
        self._schema = schema

        self._job: JobProgress | None = None
        self._parser: AvroDataFileParser | None = None
        self._records_read = 0
        self._exhausted = False

    def __enter__(self) -> "BatchProcessor":
        """Load or create the job, and open a parser at its offset."""
        stat = self._file_path.stat()

        jobs = load_progress(self._progress_path)
        if jobs and self._job_id in jobs:
            self._job = jobs[self._job_id]
            if (
                self._job.file_size != stat.st_size
                or self._job.file_mtime != stat.st_mtime
            ):
                raise StaleCheckpointError(
                    f"File has changed since last checkpoint for job '{self._job_id}'. "
                    f"Expected size={self._job.file_size}, mtime={self._job.file_mtime}; "
                    f"got size={stat.st_size}, mtime={stat.st_mtime}. "
                    "Use reset() to restart from the beginning."
                )
        else:
            now = datetime.now(timezone.utc).isoformat()
            self._job = JobProgress(
                job_id=self._job_id,
                offset=INITIAL_OFFSET,
                records_read=0,
                file_size=stat.st_size,
                file_mtime=stat.st_mtime,
                status="in_progress",
                created_at=now,
                last_checkpoint_at=now,
            )
            update_job_progress(self._progress_path, self._job)

        self._records_read = self._job.records_read
        if self._job.status != "completed" and self._job.offset != EOF_OFFSET:
            self._parser = AvroDataFileParser(
                self._file_path,
                self._job.offset,
                max_record_bytes=self._max_record_bytes,
                schema=self._schema,
            )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Close the parser; mark the job complete if exhausted without error."""
        if self._parser is not None:
            self._parser.close()
            self._parser = None

        if exc_type is None and self._exhausted and self._job:
            if self._job.status != "completed":
                now = datetime.now(timezone.utc).isoformat()
                self._job.offset = EOF_OFFSET
                self._job.records_read = self._records_read
                self._job.status = "completed"
                self._job.completed_at = now
                self._job.last_checkpoint_at = now
                update_job_progress(self._progress_path, self._job)

    def __iter__(self) -> Iterator[tuple[str, Any]]:
        """Iterate over remaining records, yielding (record_id, record)."""
        if self._job is None:
            raise RuntimeError(
                "BatchProcessor must be used as a context manager. "
                "Use 'with BatchProcessor(path, job_id) as batch:'"
            )

        if self._parser is None:
            # Already completed
            self._exhausted = True
            return

        for record in self._parser:
            self._records_read += 1
            yield record.record_id, record

        self._exhausted = True

    def checkpoint(self) -> None:
        """Persist the offset after the most recently yielded record."""
        if self._job is None or self._parser is None:
            raise RuntimeError("Cannot checkpoint outside of context manager")

        self._job.offset = self._parser.get_offset()
        self._job.records_read = self._records_read
        self._job.last_checkpoint_at = datetime.now(timezone.utc).isoformat()
        update_job_progress(self._progress_path, self._job)

    @property
    def offset(self) -> str:
        """Offset token for the current position."""
        if self._parser is not None:
            return self._parser.get_offset()
        return self._job.offset if self._job else INITIAL_OFFSET

    @property
    def records_read(self) -> int:
        """Records delivered for this job, including earlier runs."""
        return self._records_read

    @property
    def job_id(self) -> str:
        """The job identifier."""
        return self._job_id

    def reset(self) -> None:
        """Delete this job's checkpoint so the next run starts over."""
        delete_job_progress(self._progress_path, self._job_id)
        self._records_read = 0
        self._job = None
        self._exhausted = False
