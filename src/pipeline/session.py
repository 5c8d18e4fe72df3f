"""Batch pipeline state: load a file, analyze it, export the results.

Each transition produces a fresh, immutable ``BatchState``; nothing is
mutated in place. An analysis that finishes after a new file was loaded is
discarded instead of overwriting the newer state.
"""

import uuid
from collections import OrderedDict
from dataclasses import dataclass, replace
from enum import StrEnum

import structlog

from src.config import settings
from src.domains.transactions.errors import DecodeError, ScoringError
from src.domains.transactions.models import BatchSubmission, BatchSummary, ReconciledResult
from src.pipeline.export import export_csv, export_filename
from src.pipeline.ingest import ingest_file
from src.scoring.client import ScoringClient
from src.scoring.reconcile import SubmissionKind, reconcile, summarize

logger = structlog.get_logger()

ANALYSIS_IN_PROGRESS = "Analysis already in progress for this file"
NO_FILE_SELECTED = "Please select a CSV file first"
NO_RESULTS = "No results to export"

DEFAULT_MAX_SESSIONS = 100


class BatchStage(StrEnum):
    EMPTY = "empty"
    LOADED = "loaded"
    ANALYZING = "analyzing"
    ANALYZED = "analyzed"
    FAILED = "failed"


class ScoringMode(StrEnum):
    BATCH = "batch"  # records posted as JSON
    FILE = "file"  # original file uploaded as multipart


@dataclass(frozen=True)
class BatchState:
    stage: BatchStage = BatchStage.EMPTY
    file_name: str | None = None
    submission: BatchSubmission | None = None
    results: tuple[ReconciledResult, ...] = ()
    summary: BatchSummary | None = None
    error: str | None = None
    refused: bool = False  # set only on the snapshot returned to a refused caller

    @property
    def row_count(self) -> int:
        return len(self.submission) if self.submission else 0

    def preview(self, rows: int | None = None) -> list[dict]:
        if self.submission is None:
            return []
        return self.submission.preview(rows if rows is not None else settings.preview_rows)


class BatchSession:
    """One operator's file selection and its analysis results."""

    def __init__(self, session_id: str | None = None) -> None:
        self.session_id = session_id or uuid.uuid4().hex
        self._state = BatchState()
        self._in_flight = False

    @property
    def state(self) -> BatchState:
        return self._state

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def load(self, file_name: str, data: bytes) -> BatchState:
        """Ingest a new file. Any previous submission and results are dropped."""
        try:
            submission = await ingest_file(file_name, data)
        except DecodeError as e:
            logger.warning("batch_load_failed", session_id=self.session_id, file_name=file_name, error=str(e))
            self._state = BatchState(stage=BatchStage.FAILED, file_name=file_name, error=str(e))
            return self._state

        self._state = BatchState(stage=BatchStage.LOADED, file_name=file_name, submission=submission)
        logger.info("batch_loaded", session_id=self.session_id, file_name=file_name, rows=len(submission))
        return self._state

    async def analyze(
        self,
        client: ScoringClient,
        mode: ScoringMode = ScoringMode.BATCH,
    ) -> BatchState:
        """Score the loaded submission and reconcile the predictions.

        A call made while another analysis is running returns the current
        state marked ``refused`` with an error and does not touch the network.
        The stage is whatever the session holds at that moment, which is
        ``loaded`` when a new file replaced the batch mid-analysis.
        """
        if self._in_flight:
            return replace(self._state, error=ANALYSIS_IN_PROGRESS, refused=True)

        current = self._state
        submission = current.submission
        if submission is None:
            self._state = BatchState(stage=BatchStage.FAILED, error=NO_FILE_SELECTED)
            return self._state

        analyzing = replace(current, stage=BatchStage.ANALYZING, results=(), summary=None, error=None)
        self._state = analyzing
        self._in_flight = True
        try:
            if mode is ScoringMode.FILE:
                outcomes = await client.predict_csv(
                    current.file_name or "upload.csv",
                    submission.source_bytes,
                    expected_count=len(submission),
                )
                kind = SubmissionKind.CSV
            else:
                outcomes = await client.predict_batch(submission.records)
                kind = SubmissionKind.BATCH
        except ScoringError as e:
            logger.warning("batch_analysis_failed", session_id=self.session_id, error=str(e))
            next_state = replace(analyzing, stage=BatchStage.FAILED, error=str(e))
        else:
            results = tuple(
                reconcile(submission.records, outcomes, raw_rows=submission.raw_rows, kind=kind)
            )
            summary = summarize(results)
            next_state = replace(
                analyzing, stage=BatchStage.ANALYZED, results=results, summary=summary
            )
            logger.info(
                "batch_analyzed",
                session_id=self.session_id,
                mode=mode.value,
                total=summary.total,
                fraud_count=summary.fraud_count,
            )
        finally:
            self._in_flight = False

        if self._state is not analyzing:
            logger.info("batch_analysis_discarded", session_id=self.session_id)
            return next_state
        self._state = next_state
        return next_state

    def export(self) -> tuple[str, bytes]:
        """Return ``(filename, csv_bytes)``. Raises ValueError when nothing was analyzed."""
        if not self._state.results:
            raise ValueError(NO_RESULTS)
        return export_filename(), export_csv(self._state.results)


class BatchSessionStore:
    """In-memory sessions keyed by id, oldest evicted first."""

    def __init__(self, max_sessions: int = DEFAULT_MAX_SESSIONS) -> None:
        self._max_sessions = max_sessions
        self._sessions: OrderedDict[str, BatchSession] = OrderedDict()

    def create(self) -> BatchSession:
        session = BatchSession()
        self._sessions[session.session_id] = session
        while len(self._sessions) > self._max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            logger.info("batch_session_evicted", session_id=evicted)
        return session

    def get(self, session_id: str) -> BatchSession:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise KeyError(f"Unknown batch: {session_id}") from None

    def __len__(self) -> int:
        return len(self._sessions)
