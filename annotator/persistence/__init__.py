"""
Persistence module - line-delimited JSON record files with atomic saves.
"""

from .codec import (
    load_records,
    save_records,
    encode_record,
    decode_record,
    is_compressed,
)
from .errors import PersistenceError, StorageIOError, DecodeError, EncodeError

__all__ = [
    "load_records",
    "save_records",
    "encode_record",
    "decode_record",
    "is_compressed",
    "PersistenceError",
    "StorageIOError",
    "DecodeError",
    "EncodeError",
]
