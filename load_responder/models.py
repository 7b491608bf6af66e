from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

# Field values that count as "not yet known" when judging record completeness
PLACEHOLDER_VALUES = ('', 'TBD', 'N/A')


class Scenario(str, Enum):
    """Classified outcome of processing one inbound email"""
    LOAD_FOUND = 'load_found'
    LOAD_PENDING = 'load_pending'
    NO_REFERENCE = 'no_reference'
    ERROR = 'error'

    def __str__(self) -> str:
        """Return the value when converting to string."""
        return self.value


class LookupKind(str, Enum):
    SUCCESS = 'success'
    NOT_FOUND = 'notFound'
    ERROR = 'error'
    SKIPPED = 'skipped'

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class EmailContent:
    """Data class for inbound email content"""
    subject: str
    body: str
    sender: Optional[str] = None


@dataclass(frozen=True)
class ExtractionResult:
    """Data class for reference extraction results"""
    found: bool
    reference: Optional[str]
    confidence: int
    matched_pattern_id: Optional[str]
    reason: str
    diagnostics: Tuple[str, ...] = ()

    @classmethod
    def not_found(cls, reason: str, diagnostics: Tuple[str, ...] = ()) -> 'ExtractionResult':
        return cls(
            found=False,
            reference=None,
            confidence=0,
            matched_pattern_id=None,
            reason=reason,
            diagnostics=diagnostics
        )


@dataclass
class LocationTime:
    place: str
    date: Optional[str] = None
    time: Optional[str] = None


@dataclass
class Commodity:
    description: str = 'General Freight'
    weight: str = 'TBD'
    hazmat: bool = False


@dataclass
class Rate:
    amount: Optional[float] = None
    formatted: str = 'TBD'


@dataclass
class LoadRecord:
    """Structured load details returned by a lookup provider"""
    reference: str
    status: str = 'UNKNOWN'
    pickup: List[LocationTime] = field(default_factory=list)
    delivery: List[LocationTime] = field(default_factory=list)
    commodity: Commodity = field(default_factory=Commodity)
    rate: Rate = field(default_factory=Rate)
    equipment: str = 'Dry Van'
    distance: Optional[str] = None
    notes: str = ''

    @property
    def is_complete(self) -> bool:
        """True when stops, weight and rate are all known."""
        return (
            _has_known_stop(self.pickup)
            and _has_known_stop(self.delivery)
            and _is_known(self.commodity.weight)
            and _is_known(self.rate.formatted)
        )


def _is_known(value: Optional[str]) -> bool:
    return value is not None and str(value).strip().upper() not in PLACEHOLDER_VALUES


def _has_known_stop(stops: List[LocationTime]) -> bool:
    return bool(stops) and all(_is_known(stop.place) for stop in stops)


@dataclass(frozen=True)
class LookupOutcome:
    """Result of a load lookup.

    Exactly one of the four kinds; ``data`` is set only for SUCCESS and
    ``message`` only for ERROR.
    """
    kind: LookupKind
    data: Optional[LoadRecord] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, data: LoadRecord) -> 'LookupOutcome':
        return cls(kind=LookupKind.SUCCESS, data=data)

    @classmethod
    def not_found(cls) -> 'LookupOutcome':
        return cls(kind=LookupKind.NOT_FOUND)

    @classmethod
    def error(cls, message: str) -> 'LookupOutcome':
        return cls(kind=LookupKind.ERROR, message=message)

    @classmethod
    def skipped(cls) -> 'LookupOutcome':
        return cls(kind=LookupKind.SKIPPED)


@dataclass(frozen=True)
class FormattedReply:
    subject: str
    body: str
    body_html: str
    is_fallback: bool = False


@dataclass
class ProcessingResult:
    """Everything produced while answering one email"""
    request_id: str
    extraction: ExtractionResult
    outcome: LookupOutcome
    scenario: Scenario
    reply: FormattedReply
    processing_time_ms: int = 0
    success: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'request_id': self.request_id,
            'success': self.success,
            'processing_time_ms': self.processing_time_ms,
            'extraction': {
                'found': self.extraction.found,
                'reference': self.extraction.reference,
                'confidence': self.extraction.confidence,
                'matched_pattern_id': self.extraction.matched_pattern_id,
                'reason': self.extraction.reason,
            },
            'outcome': {
                'kind': str(self.outcome.kind),
                'has_data': self.outcome.data is not None,
            },
            'scenario': str(self.scenario),
            'reply': {
                'subject': self.reply.subject,
                'body': self.reply.body,
                'body_html': self.reply.body_html,
            },
        }
