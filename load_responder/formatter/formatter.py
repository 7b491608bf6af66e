"""
Reply formatting for processed load emails.

Turns a scenario plus the extraction and lookup results into a subject,
a plain-text body and an HTML body. Formatting never raises: any failure
produces the generic fallback reply so there is always something to send.
"""
import html
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..config import CompanyConfig
from ..logger import get_logger
from ..models import (
    ExtractionResult,
    FormattedReply,
    LoadRecord,
    LocationTime,
    LookupKind,
    LookupOutcome,
    Scenario,
)
from .templates import (
    FALLBACK_BODY,
    FALLBACK_SUBJECT,
    HAZMAT_NOTE,
    INCOMPLETE_RECORD_NOTE,
    ResponseTemplates,
)

logger = get_logger(__name__)

MISSING_VALUE = 'TBD'
DEFAULT_ERROR_TYPE = 'processing your request'
REFERENCE_NEEDED_SUFFIX = ' - Reference Number Needed'

# Lines starting with one of these are bolded in the HTML body
HTML_BOLD_MARKERS = ('•', '✓', '⚠️', '📦', '📍', '💰', '🚛')

_REPLY_PREFIX = re.compile(r"^\s*(?:(?:re|fwd?)\s*:\s*)+", re.IGNORECASE)
_PLACEHOLDER = re.compile(r"\{\{\s*([A-Z0-9_]+)\s*\}\}")


class FormattingError(Exception):
    """Raised when a reply cannot be built for a scenario."""
    pass


@dataclass(frozen=True)
class ReplyContext:
    """Inputs the formatter needs besides the scenario."""
    extraction: ExtractionResult
    outcome: LookupOutcome
    original_subject: Optional[str] = None
    error_type: str = DEFAULT_ERROR_TYPE


def format_subject(original_subject: Optional[str], reference: Optional[str] = None) -> str:
    """Build a reply subject, adding the load reference once.

    Args:
        original_subject: Subject of the inbound email, may be empty
        reference: Normalized load reference, if one was found

    Returns:
        ``Re: <subject>[ - Load <reference>]`` or a synthesized subject
    """
    subject = original_subject.strip() if isinstance(original_subject, str) else ''
    subject = _REPLY_PREFIX.sub('', subject).strip()

    if not subject:
        return f"Load {reference} - Quote Details" if reference else FALLBACK_SUBJECT

    if reference and reference.lower() not in subject.lower():
        subject = f"{subject} - Load {reference}"

    return f"Re: {subject}"


def plain_text_to_html(text: str) -> str:
    """Escape a plain-text body and convert it to simple HTML."""
    lines = html.escape(text, quote=True).split('\n')
    rendered = [
        f"<strong>{line}</strong>" if line.startswith(HTML_BOLD_MARKERS) else line
        for line in lines
    ]
    return '<br>\n'.join(rendered)


def build_fallback_reply(original_subject: Optional[str] = None, company_name: str = 'Your Company') -> FormattedReply:
    """The minimal reply sent when nothing better can be produced."""
    if isinstance(original_subject, str) and original_subject.strip():
        subject = f"Re: {_REPLY_PREFIX.sub('', original_subject.strip()).strip() or FALLBACK_SUBJECT}"
    else:
        subject = FALLBACK_SUBJECT
    body = f"Hello,\n\n{FALLBACK_BODY}\n\nBest regards,\n{company_name}"
    return FormattedReply(
        subject=subject,
        body=body,
        body_html=plain_text_to_html(body),
        is_fallback=True
    )


def _value(value: Optional[str]) -> str:
    if value is None:
        return MISSING_VALUE
    text = str(value).strip()
    return text if text else MISSING_VALUE


def _render_stops(stops: List[LocationTime]) -> str:
    if not stops:
        return f"• Location: {MISSING_VALUE}\n• Date: {MISSING_VALUE}"

    blocks = []
    for number, stop in enumerate(stops, start=1):
        label = 'Location' if len(stops) == 1 else f"Stop {number}"
        lines = [f"• {label}: {_value(stop.place)}", f"• Date: {_value(stop.date)}"]
        if stop.time:
            lines.append(f"• Time: {stop.time}")
        blocks.append('\n'.join(lines))
    return '\n'.join(blocks)


class ResponseFormatter:
    """Renders reply emails from templates.

    Attributes:
        company (CompanyConfig): Branding used in signatures and contact lines
        templates (ResponseTemplates): Per-scenario body templates
    """

    def __init__(self, company: Optional[CompanyConfig] = None, templates: Optional[ResponseTemplates] = None):
        self.company = company or CompanyConfig()
        if templates is None:
            templates = ResponseTemplates(signature=self.company.signature)
        self.templates = templates

    def format(self, scenario: Scenario, context: ReplyContext) -> FormattedReply:
        """Format the reply for a scenario, falling back instead of raising."""
        try:
            return self._format(scenario, context)
        except Exception as e:
            logger.error(f"Failed to format {scenario} reply, using fallback: {e}")
            return self.fallback_reply(getattr(context, 'original_subject', None))

    def fallback_reply(self, original_subject: Optional[str] = None) -> FormattedReply:
        return build_fallback_reply(original_subject, self.company.name)

    def _format(self, scenario: Scenario, context: ReplyContext) -> FormattedReply:
        try:
            template = self.templates.for_scenario(scenario)
        except ValueError as e:
            raise FormattingError(str(e)) from e

        reference = context.extraction.reference if context.extraction.found else None

        if scenario == Scenario.NO_REFERENCE:
            subject = format_subject(context.original_subject) + REFERENCE_NEEDED_SUFFIX
        else:
            subject = format_subject(context.original_subject, reference)

        values = self.build_placeholders(scenario, context)
        body = self.render(template, values) + self.render(self.templates.signature, values)

        return FormattedReply(
            subject=subject,
            body=body,
            body_html=plain_text_to_html(body)
        )

    def build_placeholders(self, scenario: Scenario, context: ReplyContext) -> Dict[str, Optional[str]]:
        """Collect placeholder values for a scenario.

        None values render as TBD; placeholders absent from the mapping
        render as an empty string.
        """
        reference = context.extraction.reference if context.extraction.found else None
        phone = self.company.phone

        values: Dict[str, Optional[str]] = {
            'LOAD_REFERENCE': reference,
            'COMPANY_NAME': self.company.name,
            'COMPANY_PHONE': phone or '',
            'CALL_US_LINE': f"• Call us directly at {phone}" if phone else "• Call us directly at your convenience",
            'FOLLOW_UP_WINDOW': self.company.follow_up_window,
            'ERROR_TYPE': context.error_type or DEFAULT_ERROR_TYPE,
        }

        if scenario == Scenario.LOAD_FOUND:
            record = context.outcome.data
            if context.outcome.kind != LookupKind.SUCCESS or record is None:
                logger.warning("LOAD_FOUND reply without load data, rendering placeholders as TBD")
                record = LoadRecord(reference=reference or MISSING_VALUE)
            values.update(self._record_placeholders(record))
            if not values['LOAD_REFERENCE']:
                values['LOAD_REFERENCE'] = record.reference

        return values

    def _record_placeholders(self, record: LoadRecord) -> Dict[str, Optional[str]]:
        first_pickup = record.pickup[0] if record.pickup else LocationTime(place=MISSING_VALUE)
        first_delivery = record.delivery[0] if record.delivery else LocationTime(place=MISSING_VALUE)

        special_notes = HAZMAT_NOTE if record.commodity.hazmat else ''
        if record.notes and record.notes.strip():
            special_notes += f"\n• Notes: {record.notes.strip()}"

        return {
            'STATUS': _value(record.status),
            'EQUIPMENT': _value(record.equipment),
            'COMMODITY': _value(record.commodity.description),
            'WEIGHT': _value(record.commodity.weight),
            'DISTANCE': _value(record.distance),
            'RATE': _value(record.rate.formatted),
            'PICKUP_LOCATION': _value(first_pickup.place),
            'PICKUP_DATE': _value(first_pickup.date),
            'PICKUP_TIME': _value(first_pickup.time),
            'PICKUP_STOPS': _render_stops(record.pickup),
            'DELIVERY_LOCATION': _value(first_delivery.place),
            'DELIVERY_DATE': _value(first_delivery.date),
            'DELIVERY_TIME': _value(first_delivery.time),
            'DELIVERY_STOPS': _render_stops(record.delivery),
            'SPECIAL_NOTES': special_notes,
            'COMPLETENESS_NOTE': '' if record.is_complete else INCOMPLETE_RECORD_NOTE,
        }

    @staticmethod
    def render(template: str, values: Dict[str, Optional[str]]) -> str:
        """Substitute ``{{NAME}}`` placeholders in a template."""
        def replace(match: re.Match) -> str:
            name = match.group(1)
            if name not in values:
                logger.debug(f"Unknown placeholder {name} rendered empty")
                return ''
            value = values[name]
            return MISSING_VALUE if value is None else str(value)

        return _PLACEHOLDER.sub(replace, template)
