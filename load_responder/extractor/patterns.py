"""
Regular expressions used to find load references in email text.

Exclusions are stripped before any candidate pattern runs. Candidate
patterns are ordered from most explicit to most permissive; their index
in CANDIDATE_PATTERNS is the priority rank used for confidence scoring.
"""
import re
from dataclasses import dataclass
from typing import List, Pattern

MAX_CONTENT_LENGTH = 5000

MIN_REFERENCE_LENGTH = 4
MAX_REFERENCE_LENGTH = 20
BANNED_PREFIXES = ('MC', 'DOT', 'PO', 'INV', 'USDOT')

# Words in the matched text that make a candidate more believable
CONFIDENCE_KEYWORDS = ('load', 'quote', 'reference')

_PHONE_NUMBER = r"(?:\+?1[\s.\-]?)?\(?\d{3}\)?[\s.\-]?\d{3}[\s.\-]?\d{4}"

# Between an identifier label and its digits: "MC123", "MC-123", "MC # 123",
# "MC no. 123", "MC Number: 123"
_ID_SEPARATOR = r"\s*(?:[#\-]|no\.?|num(?:ber)?\.?)?\s*[:#\-]?\s*"

EXCLUSION_PATTERNS: List[Pattern] = [
    # Carrier authority numbers
    re.compile(r"\bMC" + _ID_SEPARATOR + r"\d+", re.IGNORECASE),
    re.compile(r"\b(?:US)?DOT" + _ID_SEPARATOR + r"\d+", re.IGNORECASE),
    # Billing identifiers
    re.compile(r"\binv(?:oice)?" + _ID_SEPARATOR + r"\d+", re.IGNORECASE),
    re.compile(r"\bbill" + _ID_SEPARATOR + r"\d+", re.IGNORECASE),
    re.compile(r"\bP\.?O\.?" + _ID_SEPARATOR + r"\d+", re.IGNORECASE),
    # Contact numbers, labelled or in a recognisable phone layout
    re.compile(
        r"\b(?:phone|tel|fax|cell|mobile)\b\.?\s*(?:#|no\.?)?\s*:?\s*(?:" + _PHONE_NUMBER + r"|\d+)",
        re.IGNORECASE
    ),
    re.compile(r"\(\d{3}\)\s?\d{3}[.\-]\d{4}|\b\d{3}[.\-]\d{3}[.\-]\d{4}\b"),
]


@dataclass(frozen=True)
class CandidatePattern:
    """A load-reference pattern; group 1 holds the reference."""
    pattern_id: str
    regex: Pattern
    description: str


_LABEL = r"(?:reference|ref|number|no\.|id|#)(?:\s*(?:number|no\.|id|#))?"
_LABEL_SEPARATOR = r"\.?\s*[:#\-]?\s*"

CANDIDATE_PATTERNS: List[CandidatePattern] = [
    CandidatePattern(
        'load_label',
        re.compile(r"\bload\s*" + _LABEL + _LABEL_SEPARATOR + r"([A-Z0-9][A-Z0-9\-_]*)", re.IGNORECASE),
        'explicit load reference/number/id/#'
    ),
    CandidatePattern(
        'quote_label',
        re.compile(r"\bquote\s*" + _LABEL + _LABEL_SEPARATOR + r"([A-Z0-9][A-Z0-9\-_]*)", re.IGNORECASE),
        'explicit quote reference/number/id/#'
    ),
    CandidatePattern(
        'order_number',
        re.compile(r"\border\s*(?:#|no\.?|number)?\s*:?\s*(\d{6,8})\b", re.IGNORECASE),
        'order # followed by 6-8 digits'
    ),
    CandidatePattern(
        'reference_number',
        re.compile(r"\breference\s+(?:number|no\.?|#)\s*:?\s*(\d{6,8})\b", re.IGNORECASE),
        'reference number followed by 6-8 digits'
    ),
    CandidatePattern(
        'ref_label',
        re.compile(r"\bref\b\.?\s*[:#]?\s*(\d{6,8})\b", re.IGNORECASE),
        'ref: followed by 6-8 digits'
    ),
    CandidatePattern(
        'quotefactory_code',
        re.compile(r"\b(QF[\-\s]?\d{5,8})\b", re.IGNORECASE),
        'QuoteFactory QF code'
    ),
    CandidatePattern(
        'quote_code',
        re.compile(r"\bquote[\-\s]?(\d{6,8})\b", re.IGNORECASE),
        'quote followed by 6-8 digits'
    ),
    # Company-prefixed codes are matched case-sensitively; lowercase words
    # followed by numbers ("at 1234 Main St") are street addresses, not codes.
    # No whitespace between prefix and digits, or "TX 75201" would qualify.
    CandidatePattern(
        'company_code',
        re.compile(r"\b([A-Z]{2,4}[\-_]?\d{3,8}(?:[\-_]?[A-Z0-9]+)?)\b"),
        'company prefix plus 3-8 digits'
    ),
    CandidatePattern(
        'alphanumeric_code',
        re.compile(r"\b([A-HJ-Z][A-Z]*\d{4,8}[A-Z0-9]*)\b"),
        'letters followed by 4-8 digits'
    ),
    CandidatePattern(
        'bare_number',
        re.compile(r"\b(\d{6})\b"),
        'standalone 6-digit number'
    ),
]

# The least specific patterns, penalised when they win
LOW_SPECIFICITY_COUNT = 2
