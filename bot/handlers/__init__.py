"""
Bot command handlers.
"""

from . import status

__all__ = [
    'status',
]
