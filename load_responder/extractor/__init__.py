from .extractor import ReferenceExtractor, extract, normalize_reference, validate_reference

__all__ = [
    'ReferenceExtractor',
    'extract',
    'normalize_reference',
    'validate_reference'
]
