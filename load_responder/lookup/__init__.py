from .auth0 import Auth0Client, Auth0Token, AuthenticationError
from .base import LoadLookupError, LoadLookupProvider, LookupFn
from .quotefactory import (
    QuoteFactoryAPIError,
    QuoteFactoryAPIProvider,
    format_currency,
    format_distance,
    format_location,
    format_weight,
    transform_load_data,
)

__all__ = [
    'Auth0Client',
    'Auth0Token',
    'AuthenticationError',
    'LoadLookupError',
    'LoadLookupProvider',
    'LookupFn',
    'QuoteFactoryAPIError',
    'QuoteFactoryAPIProvider',
    'format_currency',
    'format_distance',
    'format_location',
    'format_weight',
    'transform_load_data'
]
