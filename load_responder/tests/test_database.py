import os
import tempfile
import unittest

from load_responder.config import DatabaseConfig
from load_responder.database.manager import DatabaseManager
from load_responder.database.models import ProcessingHistory
from load_responder.models import (
    ExtractionResult,
    FormattedReply,
    LookupOutcome,
    ProcessingResult,
    Scenario,
)


def make_result(request_id: str, scenario: Scenario, reference: str = None,
                outcome: LookupOutcome = None) -> ProcessingResult:
    if reference:
        extraction = ExtractionResult(
            found=True,
            reference=reference,
            confidence=100,
            matched_pattern_id='load_label',
            reason='Matched load_label'
        )
    else:
        extraction = ExtractionResult.not_found('No load reference found')
    return ProcessingResult(
        request_id=request_id,
        extraction=extraction,
        outcome=outcome or LookupOutcome.skipped(),
        scenario=scenario,
        reply=FormattedReply(subject='Re: test', body='body', body_html='body'),
        processing_time_ms=12
    )


class TestDatabaseManager(unittest.TestCase):
    """Test cases for DatabaseManager class"""

    def setUp(self):
        """Create a throwaway SQLite database for each test"""
        self.tmp_dir = tempfile.TemporaryDirectory()
        url = f"sqlite:///{os.path.join(self.tmp_dir.name, 'history.db')}"
        self.db_manager = DatabaseManager(DatabaseConfig(url=url))
        self.db_manager.create_tables()

    def tearDown(self):
        self.db_manager.engine.dispose()
        self.tmp_dir.cleanup()

    def test_tables_exist(self):
        """Test table creation is detected"""
        self.assertTrue(self.db_manager.check_tables_exist())

    def test_tables_missing(self):
        """Test a fresh database reports missing tables"""
        url = f"sqlite:///{os.path.join(self.tmp_dir.name, 'empty.db')}"
        empty = DatabaseManager(connection_string=url)
        try:
            self.assertFalse(empty.check_tables_exist())
        finally:
            empty.engine.dispose()

    def test_record_result(self):
        """Test storing a pipeline result"""
        result = make_result('req_1', Scenario.LOAD_PENDING, reference='302734')

        history = self.db_manager.record_result(result, sender='broker@example.com', subject='Truck?')

        self.assertIsNotNone(history.id)
        with self.db_manager.get_session() as session:
            stored = session.query(ProcessingHistory).filter_by(request_id='req_1').first()
            self.assertIsNotNone(stored)
            self.assertEqual(stored.reference, '302734')
            self.assertEqual(stored.scenario, Scenario.LOAD_PENDING)
            self.assertEqual(stored.lookup_kind, 'skipped')
            self.assertEqual(stored.sender, 'broker@example.com')
            self.assertEqual(stored.processing_time_ms, 12)
            self.assertTrue(stored.success)

    def test_error_message_stored(self):
        """Test lookup error messages are kept for troubleshooting"""
        result = make_result(
            'req_2', Scenario.ERROR, reference='302734',
            outcome=LookupOutcome.error('Search failed: 500 Internal Server Error')
        )

        self.db_manager.record_result(result)

        history = self.db_manager.get_processing_history('302734')
        self.assertEqual(len(history), 1)
        self.assertEqual(history[0].lookup_kind, 'error')
        self.assertEqual(history[0].error_message, 'Search failed: 500 Internal Server Error')

    def test_get_processing_history(self):
        """Test retrieving history for one reference"""
        self.db_manager.record_result(make_result('req_a', Scenario.LOAD_PENDING, reference='302734'))
        self.db_manager.record_result(make_result('req_b', Scenario.LOAD_FOUND, reference='302734'))
        self.db_manager.record_result(make_result('req_c', Scenario.LOAD_PENDING, reference='445566'))

        history = self.db_manager.get_processing_history('302734')

        self.assertEqual(len(history), 2)
        self.assertEqual({h.request_id for h in history}, {'req_a', 'req_b'})
        # Records are detached but still readable
        self.assertIsNotNone(history[0].processing_date)

    def test_get_scenario_counts(self):
        """Test aggregating processed emails per scenario"""
        self.db_manager.record_result(make_result('req_1', Scenario.NO_REFERENCE))
        self.db_manager.record_result(make_result('req_2', Scenario.NO_REFERENCE))
        self.db_manager.record_result(make_result('req_3', Scenario.LOAD_PENDING, reference='302734'))

        counts = self.db_manager.get_scenario_counts()

        self.assertEqual(counts[Scenario.NO_REFERENCE], 2)
        self.assertEqual(counts[Scenario.LOAD_PENDING], 1)
        self.assertNotIn(Scenario.LOAD_FOUND, counts)

    def test_requires_url(self):
        """Test a database URL is mandatory"""
        with self.assertRaises(ValueError):
            DatabaseManager(DatabaseConfig(url=None))


if __name__ == '__main__':
    unittest.main()
