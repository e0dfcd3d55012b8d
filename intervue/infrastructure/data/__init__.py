"""
Data infrastructure for interview record persistence.
"""

from .records import SupabaseRecordStore, StoreResponse, LOOKUP_COLUMNS

__all__ = [
    'SupabaseRecordStore',
    'StoreResponse',
    'LOOKUP_COLUMNS',
]
