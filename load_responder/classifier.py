"""
Scenario classification for processed emails.

Maps the extraction result and the lookup outcome onto the reply scenario.
A successful lookup is always LOAD_FOUND, even for a partial record; the
formatter decides how to present missing fields.
"""
from .models import ExtractionResult, LookupKind, LookupOutcome, Scenario


def classify(extraction: ExtractionResult, outcome: LookupOutcome) -> Scenario:
    """Pick the reply scenario for one email.

    Args:
        extraction: Result of reference extraction
        outcome: Result of the load lookup (SKIPPED when none was attempted)

    Returns:
        The Scenario to answer with; never raises
    """
    if not extraction.found:
        return Scenario.NO_REFERENCE
    if outcome.kind == LookupKind.ERROR:
        return Scenario.ERROR
    if outcome.kind == LookupKind.SUCCESS:
        return Scenario.LOAD_FOUND
    # NOT_FOUND or SKIPPED with a usable reference
    return Scenario.LOAD_PENDING
