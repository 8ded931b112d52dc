"""In-process job surface: submit a batch, poll its status, fetch its result."""

import logging
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional, Sequence

from bookindex.indexer.models import BatchResult, Document

from .batch import validate_documents
from .config import IndexerConfig
from .driver import run_batch
from .sinks import IndexSink
from .sources import DocumentSource

logger = logging.getLogger(__name__)


class JobState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class JobStatus:
    job_id: str
    state: JobState
    custom_status: str = ""
    error: Optional[str] = None

    @property
    def done(self) -> bool:
        return self.state in (JobState.COMPLETED, JobState.FAILED)


class IndexJobManager:
    """Runs batches in the background, one job at a time per worker."""

    def __init__(self, config: Optional[IndexerConfig] = None, source: Optional[DocumentSource] = None,
                 sink: Optional[IndexSink] = None, max_jobs: int = 1):
        self.config = (config or IndexerConfig()).validate()
        self.source = source
        self.sink = sink
        self._executor = ThreadPoolExecutor(max_workers=max_jobs, thread_name_prefix="index-job")
        self._lock = threading.Lock()
        self._statuses: Dict[str, JobStatus] = {}
        self._futures: Dict[str, Future] = {}

    def submit(self, documents: Sequence[Document]) -> str:
        """Queue a batch and return its job id. Invalid input is rejected here."""
        documents = validate_documents(documents)
        job_id = uuid.uuid4().hex
        with self._lock:
            self._statuses[job_id] = JobStatus(job_id, JobState.PENDING, "Queued")
            self._futures[job_id] = self._executor.submit(self._run, job_id, documents)
        logger.info("Submitted job %s with %d document(s)", job_id, len(documents))
        return job_id

    def status(self, job_id: str) -> JobStatus:
        with self._lock:
            try:
                return self._statuses[job_id]
            except KeyError:
                raise KeyError(f"Unknown job {job_id}") from None

    def result(self, job_id: str, timeout: Optional[float] = None, forget: bool = False) -> BatchResult:
        """Block until the job finishes; re-raises the job's error if it failed.

        With ``forget=True`` the finished job is dropped once its outcome is
        returned or raised.
        """
        with self._lock:
            future = self._futures.get(job_id)
        if future is None:
            raise KeyError(f"Unknown job {job_id}")
        try:
            return future.result(timeout=timeout)
        finally:
            if forget and future.done():
                self.forget(job_id)

    def forget(self, job_id: str) -> None:
        """Release a finished job's status and result."""
        with self._lock:
            future = self._futures.get(job_id)
            if future is None:
                raise KeyError(f"Unknown job {job_id}")
            if not future.done():
                raise RuntimeError(f"Job {job_id} is still running")
            del self._futures[job_id]
            del self._statuses[job_id]

    def __len__(self) -> int:
        with self._lock:
            return len(self._futures)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "IndexJobManager":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()

    def _update(self, job_id: str, **changes) -> None:
        with self._lock:
            self._statuses[job_id] = replace(self._statuses[job_id], **changes)

    def _run(self, job_id: str, documents: Sequence[Document]) -> BatchResult:
        self._update(job_id, state=JobState.RUNNING, custom_status="Starting")
        try:
            result = run_batch(
                documents,
                config=self.config,
                source=self.source,
                sink=self.sink,
                on_status=lambda message: self._update(job_id, custom_status=message),
            )
        except Exception as exc:
            logger.error("Job %s failed: %s", job_id, exc)
            self._update(job_id, state=JobState.FAILED, error=str(exc))
            raise
        self._update(job_id, state=JobState.COMPLETED)
        return result
