from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from sqlalchemy import create_engine, func, inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session

from ..config import DatabaseConfig
from ..logger import get_logger
from ..models import ProcessingResult, Scenario
from .models import Base, ProcessingHistory

logger = get_logger(__name__)


class DatabaseManager:
    def __init__(self, config: Optional[DatabaseConfig] = None, connection_string: Optional[str] = None):
        """Initialize database connection and session factory
        
        Args:
            config: Database configuration holding the connection URL
            connection_string: Explicit SQLAlchemy URL, overrides config
        """
        url = connection_string or (config.url if config else None)
        if not url:
            raise ValueError("A database URL is required (set DATABASE_URL or DB_NAME)")
        self.engine = create_engine(url)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_tables(self) -> None:
        """Create database tables if they don't exist"""
        try:
            Base.metadata.create_all(self.engine)
            logger.info("Database tables created successfully")
        except SQLAlchemyError as e:
            logger.error(f"Error creating tables: {e}")
            raise

    @contextmanager
    def get_session(self) -> Iterator[Session]:
        """Get a database session with automatic cleanup"""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def add_processing_history(
        self,
        request_id: str,
        scenario: Scenario,
        lookup_kind: str,
        success: bool,
        reference: Optional[str] = None,
        confidence: int = 0,
        sender: Optional[str] = None,
        subject: Optional[str] = None,
        error_message: Optional[str] = None,
        processing_time_ms: Optional[int] = None
    ) -> ProcessingHistory:
        """Add a record to processing history."""
        history = ProcessingHistory(
            request_id=request_id,
            scenario=scenario,
            lookup_kind=lookup_kind,
            success=success,
            reference=reference,
            confidence=confidence,
            sender=sender,
            subject=subject,
            error_message=error_message,
            processing_time_ms=processing_time_ms
        )

        with self.get_session() as session:
            session.add(history)
            session.flush()  # Ensure the id and defaults are populated
            return history

    def record_result(self, result: ProcessingResult, sender: Optional[str] = None,
                      subject: Optional[str] = None) -> ProcessingHistory:
        """Store a pipeline result in the processing history."""
        return self.add_processing_history(
            request_id=result.request_id,
            scenario=result.scenario,
            lookup_kind=str(result.outcome.kind),
            success=result.success,
            reference=result.extraction.reference,
            confidence=result.extraction.confidence,
            sender=sender,
            subject=subject,
            error_message=result.outcome.message,
            processing_time_ms=result.processing_time_ms
        )

    def get_processing_history(self, reference: str) -> List[ProcessingHistory]:
        """Get processing history for a load reference
        
        Args:
            reference: Normalized load reference
            
        Returns:
            List of ProcessingHistory records, ordered by processing date
            
        Raises:
            SQLAlchemyError: If there's a database error
        """
        with self.get_session() as session:
            history = session.query(ProcessingHistory)\
                .filter(ProcessingHistory.reference == reference)\
                .order_by(ProcessingHistory.processing_date)\
                .all()
            
            for record in history:
                session.expunge(record)
            
            return history

    def get_scenario_counts(self) -> Dict[Scenario, int]:
        """Count processed emails per scenario."""
        with self.get_session() as session:
            rows = session.query(ProcessingHistory.scenario, func.count(ProcessingHistory.id))\
                .group_by(ProcessingHistory.scenario)\
                .all()
            return {scenario: count for scenario, count in rows}

    def check_tables_exist(self) -> bool:
        """Check if all required database tables exist.
        
        Returns:
            bool: True if all tables exist, False otherwise
        """
        required_tables = {'processing_history'}
        try:
            existing_tables = set(inspect(self.engine).get_table_names())
            return required_tables.issubset(existing_tables)
        except SQLAlchemyError as e:
            logger.error(f"Error checking tables: {e}")
            return False
