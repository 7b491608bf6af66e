import html
import re
from typing import Any, Dict, List, Optional

from ..logger import get_logger
from ..models import ExtractionResult
from .patterns import (
    BANNED_PREFIXES,
    CANDIDATE_PATTERNS,
    CONFIDENCE_KEYWORDS,
    EXCLUSION_PATTERNS,
    LOW_SPECIFICITY_COUNT,
    MAX_CONTENT_LENGTH,
    MAX_REFERENCE_LENGTH,
    MIN_REFERENCE_LENGTH,
    CandidatePattern,
)

logger = get_logger(__name__)

_HTML_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")
_DISALLOWED_REFERENCE_CHARS = re.compile(r"[^A-Za-z0-9\-]")
_DIGIT = re.compile(r"\d")


def sanitize_content(content: str) -> str:
    """Bound the length, drop HTML tags, decode entities and collapse whitespace."""
    truncated = content[:MAX_CONTENT_LENGTH]
    without_tags = _HTML_TAG.sub(' ', truncated)
    return _WHITESPACE.sub(' ', html.unescape(without_tags)).strip()


def remove_exclusions(content: str) -> str:
    """Blank out identifiers that look like references but never are."""
    for pattern in EXCLUSION_PATTERNS:
        content = pattern.sub(' ', content)
    return content


def normalize_reference(reference: str) -> str:
    return _DISALLOWED_REFERENCE_CHARS.sub('', reference.strip().upper())


def validate_reference(reference: str) -> List[str]:
    """Return the validation errors for a normalized candidate (empty if valid)."""
    errors = []
    if len(reference) < MIN_REFERENCE_LENGTH:
        errors.append('Reference too short')
    if len(reference) > MAX_REFERENCE_LENGTH:
        errors.append('Reference too long')
    if not _DIGIT.search(reference):
        errors.append('Reference must contain numbers')
    for prefix in BANNED_PREFIXES:
        if reference.startswith(prefix):
            errors.append(f'Invalid prefix: {prefix}')
    return errors


def calculate_confidence(pattern_index: int, matched_text: str, pattern_count: int = len(CANDIDATE_PATTERNS)) -> int:
    """Score a winning match from its pattern rank and surrounding wording."""
    confidence = 100 - pattern_index * 10

    lowered = matched_text.lower()
    if any(keyword in lowered for keyword in CONFIDENCE_KEYWORDS):
        confidence = min(100, confidence + 20)

    if pattern_index >= pattern_count - LOW_SPECIFICITY_COUNT:
        confidence = max(50, confidence - 30)

    return confidence


class ReferenceExtractor:
    """Finds the load reference a sender is asking about.

    Extraction is a pure function of its input: the same text always gives
    the same result, and nothing is logged above DEBUG level here so callers
    decide what to report.
    """

    def __init__(self, patterns: Optional[List[CandidatePattern]] = None):
        self.patterns = patterns if patterns is not None else CANDIDATE_PATTERNS

    def extract(self, content: Any) -> ExtractionResult:
        """Extract the single best load reference from email text.

        Args:
            content: Email subject or body, plain text or HTML

        Returns:
            ExtractionResult; ``found`` is False when nothing valid was seen
        """
        if not isinstance(content, str) or not content.strip():
            return ExtractionResult.not_found('No email content provided')

        searchable = remove_exclusions(sanitize_content(content))
        diagnostics: List[str] = []

        for index, candidate_pattern in enumerate(self.patterns):
            for match in candidate_pattern.regex.finditer(searchable):
                candidate = normalize_reference(match.group(1) or '')
                errors = validate_reference(candidate)
                if errors:
                    diagnostics.append(
                        f"{candidate_pattern.pattern_id}: rejected '{candidate}' ({', '.join(errors)})"
                    )
                    continue

                confidence = calculate_confidence(index, match.group(0), len(self.patterns))
                diagnostics.append(
                    f"{candidate_pattern.pattern_id}: accepted '{candidate}' with confidence {confidence}"
                )
                logger.debug(f"Extracted reference {candidate} via {candidate_pattern.pattern_id}")
                return ExtractionResult(
                    found=True,
                    reference=candidate,
                    confidence=confidence,
                    matched_pattern_id=candidate_pattern.pattern_id,
                    reason=f'Load reference matched {candidate_pattern.description}',
                    diagnostics=tuple(diagnostics)
                )

        return ExtractionResult.not_found(
            'No valid load reference found in email',
            diagnostics=tuple(diagnostics)
        )

    def extract_multiple(self, content: Any, max_references: int = 5) -> List[Dict[str, Any]]:
        """Collect every distinct valid reference, best first.

        Args:
            content: Email text
            max_references: Upper bound on the number of references returned

        Returns:
            List of ``{'reference', 'confidence', 'matched_pattern_id'}`` dicts
            sorted by confidence (ties keep pattern priority order)
        """
        if not isinstance(content, str) or not content.strip() or max_references <= 0:
            return []

        searchable = remove_exclusions(sanitize_content(content))
        seen = set()
        found: List[Dict[str, Any]] = []

        for index, candidate_pattern in enumerate(self.patterns):
            for match in candidate_pattern.regex.finditer(searchable):
                if len(found) >= max_references:
                    break
                candidate = normalize_reference(match.group(1) or '')
                if candidate in seen or validate_reference(candidate):
                    continue
                seen.add(candidate)
                found.append({
                    'reference': candidate,
                    'confidence': calculate_confidence(index, match.group(0), len(self.patterns)),
                    'matched_pattern_id': candidate_pattern.pattern_id,
                })

        # sort is stable, so equal scores keep pattern priority order
        found.sort(key=lambda entry: -entry['confidence'])
        return found


_default_extractor = ReferenceExtractor()


def extract(content: Any) -> ExtractionResult:
    """Module-level shortcut using the default pattern set."""
    return _default_extractor.extract(content)
