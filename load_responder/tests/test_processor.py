"""
End-to-end tests for the load email processing pipeline.
"""
import unittest
from unittest.mock import AsyncMock, MagicMock

from sqlalchemy.exc import SQLAlchemyError

from load_responder.config import CompanyConfig
from load_responder.formatter import ResponseFormatter
from load_responder.models import (
    Commodity,
    EmailContent,
    LoadRecord,
    LocationTime,
    LookupKind,
    LookupOutcome,
    Rate,
    Scenario,
)
from load_responder.processor import LoadEmailProcessor


def complete_record() -> LoadRecord:
    return LoadRecord(
        reference="302734",
        status="AVAILABLE",
        pickup=[LocationTime(place="Dallas, TX", date="2024-06-03")],
        delivery=[LocationTime(place="Atlanta, GA", date="2024-06-05")],
        commodity=Commodity(description="Paper rolls", weight="42,000 lbs", hazmat=False),
        rate=Rate(amount=1250.0, formatted="$1,250.00"),
        equipment="Dry Van"
    )


class TestLoadEmailProcessor(unittest.IsolatedAsyncioTestCase):
    """End-to-end test suite for the processing pipeline."""

    def setUp(self):
        """Set up test environment before each test."""
        self.processor = LoadEmailProcessor(
            formatter=ResponseFormatter(company=CompanyConfig(name="Balto Booking"))
        )
        self.quote_email = EmailContent(
            subject="Truck for Dallas?",
            body="Please quote order #302734 ASAP",
            sender="broker@example.com"
        )

    async def test_reference_without_lookup_is_pending(self):
        """Test a found reference with no lookup provider configured."""
        result = await self.processor.process(self.quote_email)

        self.assertEqual(result.extraction.reference, "302734")
        self.assertEqual(result.outcome.kind, LookupKind.SKIPPED)
        self.assertEqual(result.scenario, Scenario.LOAD_PENDING)
        self.assertIn("302734", result.reply.body)
        self.assertIn("When and where will you be empty for pickup?", result.reply.body)
        self.assertTrue(result.success)
        self.assertTrue(result.request_id.startswith("req_"))

    async def test_no_reference(self):
        """Test an inquiry without any reference."""
        email = EmailContent(subject="Truck availability", body="Hi, do you have a truck available?")
        result = await self.processor.process(email)

        self.assertFalse(result.extraction.found)
        self.assertEqual(result.scenario, Scenario.NO_REFERENCE)
        self.assertTrue(result.reply.subject.endswith("Reference Number Needed"))

    async def test_load_found(self):
        """Test a successful lookup of a complete record."""
        lookup = AsyncMock(return_value=LookupOutcome.success(complete_record()))
        result = await self.processor.process(self.quote_email, lookup)

        lookup.assert_awaited_once_with("302734", self.processor.lookup_timeout_ms)
        self.assertEqual(result.scenario, Scenario.LOAD_FOUND)
        self.assertIn("$1,250.00", result.reply.body)
        self.assertNotIn("HAZMAT", result.reply.body)
        self.assertEqual(self.processor.metrics.successful_lookups, 1)

    async def test_configured_provider_used(self):
        """Test that the configured provider is used when no lookup is passed."""
        provider = MagicMock()
        provider.lookup = AsyncMock(return_value=LookupOutcome.not_found())
        processor = LoadEmailProcessor(lookup_provider=provider, lookup_timeout_ms=5000)

        result = await processor.process(self.quote_email)

        provider.lookup.assert_awaited_once_with("302734", 5000)
        self.assertEqual(result.scenario, Scenario.LOAD_PENDING)

    async def test_lookup_error_hidden_from_reply(self):
        """Test a lookup failure maps to ERROR without leaking details."""
        lookup = AsyncMock(return_value=LookupOutcome.error("Search failed: 503 Service Unavailable"))
        result = await self.processor.process(self.quote_email, lookup)

        self.assertEqual(result.scenario, Scenario.ERROR)
        self.assertIn("retrieving load details", result.reply.body)
        self.assertNotIn("503", result.reply.body)

    async def test_lookup_raising_becomes_error(self):
        """Test a provider that raises is treated as a lookup error."""
        lookup = AsyncMock(side_effect=RuntimeError("browser crashed"))
        result = await self.processor.process(self.quote_email, lookup)

        self.assertEqual(result.outcome.kind, LookupKind.ERROR)
        self.assertEqual(result.scenario, Scenario.ERROR)
        self.assertNotIn("browser crashed", result.reply.body)

    async def test_lookup_not_called_without_reference(self):
        """Test no lookup happens when extraction finds nothing."""
        lookup = AsyncMock()
        email = EmailContent(subject="", body="Need a truck")
        result = await self.processor.process(email, lookup)

        lookup.assert_not_awaited()
        self.assertEqual(result.outcome.kind, LookupKind.SKIPPED)

    async def test_subject_fallback(self):
        """Test extraction falls back to the subject when the body has no reference."""
        email = EmailContent(subject="Load #: 445566", body="Is this still available?")
        result = await self.processor.process(email)

        self.assertEqual(result.extraction.reference, "445566")
        self.assertEqual(result.reply.subject, "Re: Load #: 445566")

    async def test_missing_email(self):
        """Test that missing email content is treated as empty."""
        result = await self.processor.process(None)

        self.assertEqual(result.scenario, Scenario.NO_REFERENCE)
        self.assertTrue(result.reply.body)

    async def test_formatter_failure_returns_fallback(self):
        """Test that an unexpected failure still produces a reply."""
        formatter = MagicMock()
        formatter.company = CompanyConfig(name="Balto Booking")
        formatter.format.side_effect = RuntimeError("template exploded")
        processor = LoadEmailProcessor(formatter=formatter)

        result = await processor.process(self.quote_email)

        self.assertEqual(result.scenario, Scenario.ERROR)
        self.assertFalse(result.success)
        self.assertTrue(result.reply.is_fallback)
        self.assertIn("We are processing your inquiry and will respond shortly.", result.reply.body)
        self.assertEqual(result.extraction.reference, "302734")
        self.assertEqual(processor.metrics.errors, 1)

    async def test_history_recorded(self):
        """Test each result is stored when a database manager is present."""
        db_manager = MagicMock()
        processor = LoadEmailProcessor(db_manager=db_manager)

        result = await processor.process(self.quote_email)

        db_manager.record_result.assert_called_once_with(
            result,
            sender="broker@example.com",
            subject="Truck for Dallas?"
        )

    async def test_history_failure_does_not_break_reply(self):
        """Test database errors are logged, not raised."""
        db_manager = MagicMock()
        db_manager.record_result.side_effect = SQLAlchemyError("connection refused")
        processor = LoadEmailProcessor(db_manager=db_manager)

        result = await processor.process(self.quote_email)

        self.assertEqual(result.scenario, Scenario.LOAD_PENDING)
        self.assertTrue(result.success)

    async def test_history_store_failure_of_any_kind_is_contained(self):
        """Test a history store raising a non-database error does not escape process."""
        db_manager = MagicMock()
        db_manager.record_result.side_effect = OSError("disk full")
        processor = LoadEmailProcessor(db_manager=db_manager)

        result = await processor.process(self.quote_email)

        db_manager.record_result.assert_called_once()
        self.assertEqual(result.scenario, Scenario.LOAD_PENDING)
        self.assertTrue(result.success)
        self.assertEqual(processor.metrics.errors, 0)

    async def test_process_many(self):
        """Test batch processing and its summary."""
        lookup = AsyncMock(side_effect=[
            LookupOutcome.success(complete_record()),
            LookupOutcome.not_found(),
        ])
        emails = [
            self.quote_email,
            EmailContent(subject="", body="Load ref: QF-123456 please"),
            EmailContent(subject="", body="Do you have trucks?"),
        ]

        batch = await self.processor.process_many(emails, lookup)
        summary = batch.summary

        self.assertEqual(len(batch.results), 3)
        self.assertTrue(batch.batch_id.startswith("batch_"))
        self.assertEqual(summary.total, 3)
        self.assertEqual(summary.successful, 3)
        self.assertEqual(summary.extractions_found, 2)
        self.assertEqual(summary.loads_found, 1)
        self.assertEqual(summary.lookup_rate, 50.0)
        self.assertEqual(
            [r.scenario for r in batch.results],
            [Scenario.LOAD_FOUND, Scenario.LOAD_PENDING, Scenario.NO_REFERENCE]
        )
        self.assertEqual(self.processor.metrics.processed_emails, 3)
        self.assertEqual(self.processor.metrics.extraction_rate, 66.7)

    async def test_result_to_dict(self):
        """Test the JSON-friendly view of a result."""
        result = await self.processor.process(self.quote_email)
        data = result.to_dict()

        self.assertEqual(data['scenario'], 'load_pending')
        self.assertEqual(data['extraction']['reference'], '302734')
        self.assertEqual(data['outcome']['kind'], 'skipped')
        self.assertIn('body_html', data['reply'])


if __name__ == '__main__':
    unittest.main()
