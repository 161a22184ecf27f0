# Storage Module
"""
Storage helpers for SHIORI state files.
"""

from shiori.storage.json_file import read_json, write_json_atomic

__all__ = [
    "read_json",
    "write_json_atomic",
]
