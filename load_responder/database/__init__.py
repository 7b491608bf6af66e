from .models import Base, ProcessingHistory
from .manager import DatabaseManager

__all__ = [
    'Base',
    'ProcessingHistory',
    'DatabaseManager'
]
