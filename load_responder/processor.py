"""
Load email processing pipeline.

Sequences reference extraction, load lookup, scenario classification and
reply formatting for inbound broker emails. ``process`` always returns a
result with a sendable reply; internal failures become the ERROR scenario
with the generic fallback reply.
"""
import time
import uuid
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .classifier import classify
from .database import DatabaseManager
from .extractor import ReferenceExtractor
from .formatter import ReplyContext, ResponseFormatter, build_fallback_reply
from .logger import get_logger
from .lookup import LoadLookupProvider, LookupFn
from .models import (
    EmailContent,
    ExtractionResult,
    LookupKind,
    LookupOutcome,
    ProcessingResult,
    Scenario,
)

logger = get_logger(__name__)

DEFAULT_LOOKUP_TIMEOUT_MS = 30000
LOOKUP_ERROR_TYPE = 'retrieving load details'
PROCESSING_ERROR_TYPE = 'processing your email'


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


@dataclass
class ProcessingMetrics:
    """Counters for the lifetime of one processor instance."""
    processed_emails: int = 0
    successful_extractions: int = 0
    successful_lookups: int = 0
    errors: int = 0

    @property
    def extraction_rate(self) -> float:
        return _rate(self.successful_extractions, self.processed_emails)

    @property
    def lookup_success_rate(self) -> float:
        return _rate(self.successful_lookups, self.successful_extractions)


@dataclass
class BatchSummary:
    total: int
    successful: int
    failed: int
    extractions_found: int
    loads_found: int

    @property
    def success_rate(self) -> float:
        return _rate(self.successful, self.total)

    @property
    def extraction_rate(self) -> float:
        return _rate(self.extractions_found, self.total)

    @property
    def lookup_rate(self) -> float:
        return _rate(self.loads_found, self.extractions_found)


@dataclass
class BatchResult:
    batch_id: str
    results: List[ProcessingResult] = field(default_factory=list)

    @property
    def summary(self) -> BatchSummary:
        return BatchSummary(
            total=len(self.results),
            successful=sum(1 for r in self.results if r.success),
            failed=sum(1 for r in self.results if not r.success),
            extractions_found=sum(1 for r in self.results if r.extraction.found),
            loads_found=sum(1 for r in self.results if r.outcome.kind == LookupKind.SUCCESS)
        )


class LoadEmailProcessor:
    """Main class for answering load inquiry emails.

    This class orchestrates the interaction between:
    - Reference Extractor for finding the load reference
    - Load Lookup Provider for retrieving load details
    - Response Formatter for rendering the reply
    - Database Manager (optional) for the processing history

    Attributes:
        extractor (ReferenceExtractor): Finds load references in email text
        formatter (ResponseFormatter): Renders replies
        lookup_provider (LoadLookupProvider): Default lookup, None to skip lookups
        db (DatabaseManager): Optional processing-history store
        lookup_timeout_ms (int): Time budget handed to the lookup provider
        metrics (ProcessingMetrics): Running counters
    """

    def __init__(
        self,
        extractor: Optional[ReferenceExtractor] = None,
        formatter: Optional[ResponseFormatter] = None,
        lookup_provider: Optional[LoadLookupProvider] = None,
        db_manager: Optional[DatabaseManager] = None,
        lookup_timeout_ms: int = DEFAULT_LOOKUP_TIMEOUT_MS
    ):
        self.extractor = extractor or ReferenceExtractor()
        self.formatter = formatter or ResponseFormatter()
        self.lookup_provider = lookup_provider
        self.db = db_manager
        self.lookup_timeout_ms = lookup_timeout_ms
        self.metrics = ProcessingMetrics()

    async def process(self, email: Optional[EmailContent], lookup: Optional[LookupFn] = None) -> ProcessingResult:
        """Process one inbound email and build the reply.

        Args:
            email: Inbound email; missing content is treated as empty
            lookup: Lookup callable overriding the configured provider

        Returns:
            ProcessingResult with extraction, lookup outcome, scenario and reply
        """
        started = time.monotonic()
        request_id = _new_id('req')
        subject = getattr(email, 'subject', None)
        body = getattr(email, 'body', None)
        extraction = None
        self.metrics.processed_emails += 1

        logger.info(f"[{request_id}] Starting email processing (subject: {subject!r})")

        try:
            extraction = self.extract(subject, body)
            logger.info(
                f"[{request_id}] Extraction result: found={extraction.found} "
                f"reference={extraction.reference} confidence={extraction.confidence}"
            )
            if extraction.found:
                self.metrics.successful_extractions += 1

            outcome = await self._lookup(request_id, extraction, lookup)
            if outcome.kind == LookupKind.SUCCESS:
                self.metrics.successful_lookups += 1

            scenario = classify(extraction, outcome)
            error_type = LOOKUP_ERROR_TYPE if outcome.kind == LookupKind.ERROR else PROCESSING_ERROR_TYPE
            reply = self.formatter.format(scenario, ReplyContext(
                extraction=extraction,
                outcome=outcome,
                original_subject=subject,
                error_type=error_type
            ))

            result = ProcessingResult(
                request_id=request_id,
                extraction=extraction,
                outcome=outcome,
                scenario=scenario,
                reply=reply,
                processing_time_ms=self._elapsed_ms(started),
                success=not reply.is_fallback
            )
            logger.info(f"[{request_id}] Processing completed as {scenario} in {result.processing_time_ms}ms")

        except Exception as e:
            self.metrics.errors += 1
            logger.error(f"[{request_id}] Processing failed: {e}", exc_info=True)
            result = self._fallback_result(request_id, subject, started, extraction)

        self._record(result, email)
        return result

    async def process_many(self, emails: Sequence[EmailContent], lookup: Optional[LookupFn] = None) -> BatchResult:
        """Process emails one after another.

        Args:
            emails: Inbound emails
            lookup: Lookup callable overriding the configured provider

        Returns:
            BatchResult holding every result and a summary
        """
        batch = BatchResult(batch_id=_new_id('batch'))
        logger.info(f"[{batch.batch_id}] Starting batch processing of {len(emails)} emails")

        for email in emails:
            batch.results.append(await self.process(email, lookup))

        summary = batch.summary
        logger.info(
            f"[{batch.batch_id}] Batch processing completed: {summary.successful}/{summary.total} "
            f"successful, {summary.extractions_found} references, {summary.loads_found} loads found"
        )
        return batch

    def extract(self, subject: Optional[str], body: Optional[str]) -> ExtractionResult:
        """Extract from the body first, then fall back to the subject."""
        extraction = self.extractor.extract(body)
        if extraction.found or not isinstance(subject, str) or not subject.strip():
            return extraction

        from_subject = self.extractor.extract(subject)
        if from_subject.found:
            return from_subject
        return extraction

    async def _lookup(self, request_id: str, extraction: ExtractionResult, lookup: Optional[LookupFn]) -> LookupOutcome:
        if lookup is None and self.lookup_provider is not None:
            lookup = self.lookup_provider.lookup

        if not extraction.found or lookup is None:
            logger.debug(f"[{request_id}] Lookup skipped")
            return LookupOutcome.skipped()

        logger.info(f"[{request_id}] Looking up load: {extraction.reference}")
        try:
            outcome = await lookup(extraction.reference, self.lookup_timeout_ms)
        except Exception as e:
            # Providers should not raise; treat it like any other lookup failure
            logger.error(f"[{request_id}] Lookup raised instead of returning an outcome: {e}")
            return LookupOutcome.error(str(e))

        if not isinstance(outcome, LookupOutcome):
            logger.error(f"[{request_id}] Lookup returned {type(outcome).__name__}, expected LookupOutcome")
            return LookupOutcome.error("Lookup returned an invalid outcome")

        if outcome.kind == LookupKind.ERROR:
            logger.error(f"[{request_id}] Lookup failed: {outcome.message}")
        else:
            logger.info(f"[{request_id}] Lookup outcome: {outcome.kind}")
        return outcome

    def _fallback_result(self, request_id: str, subject: Optional[str], started: float,
                         extraction: Optional[ExtractionResult] = None) -> ProcessingResult:
        company_name = getattr(getattr(self.formatter, 'company', None), 'name', 'Your Company')
        return ProcessingResult(
            request_id=request_id,
            extraction=extraction or ExtractionResult.not_found('Processing failed before extraction completed'),
            outcome=LookupOutcome.error('Processing failed'),
            scenario=Scenario.ERROR,
            reply=build_fallback_reply(subject, company_name),
            processing_time_ms=self._elapsed_ms(started),
            success=False
        )

    def _record(self, result: ProcessingResult, email: Optional[EmailContent]) -> None:
        if self.db is None:
            return
        try:
            self.db.record_result(
                result,
                sender=getattr(email, 'sender', None),
                subject=getattr(email, 'subject', None)
            )
        except Exception as e:
            # History is best effort; the reply has already been built
            logger.error(f"[{result.request_id}] Failed to record processing history: {e}")

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.monotonic() - started) * 1000)
