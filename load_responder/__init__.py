from load_responder.classifier import classify
from load_responder.config import Config, CompanyConfig, QuoteFactoryConfig
from load_responder.extractor import ReferenceExtractor, extract
from load_responder.formatter import ReplyContext, ResponseFormatter, ResponseTemplates
from load_responder.lookup import LoadLookupProvider, QuoteFactoryAPIProvider
from load_responder.models import (
    EmailContent,
    ExtractionResult,
    FormattedReply,
    LoadRecord,
    LookupKind,
    LookupOutcome,
    ProcessingResult,
    Scenario,
)
from load_responder.processor import LoadEmailProcessor

__all__ = [
    'classify',
    'Config',
    'CompanyConfig',
    'QuoteFactoryConfig',
    'ReferenceExtractor',
    'extract',
    'ReplyContext',
    'ResponseFormatter',
    'ResponseTemplates',
    'LoadLookupProvider',
    'QuoteFactoryAPIProvider',
    'EmailContent',
    'ExtractionResult',
    'FormattedReply',
    'LoadRecord',
    'LookupKind',
    'LookupOutcome',
    'ProcessingResult',
    'Scenario',
    'LoadEmailProcessor'
]
