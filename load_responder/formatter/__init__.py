from .formatter import (
    FormattingError,
    ReplyContext,
    ResponseFormatter,
    build_fallback_reply,
    format_subject,
    plain_text_to_html,
)
from .templates import ResponseTemplates

__all__ = [
    'FormattingError',
    'ReplyContext',
    'ResponseFormatter',
    'ResponseTemplates',
    'build_fallback_reply',
    'format_subject',
    'plain_text_to_html'
]
