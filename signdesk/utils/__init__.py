"""
Utility functions and helpers.
"""
from .log import configure_logging
from .resource_loader import ensure_dir, get_app_data_dir
from .storage import read_json, write_json_atomic

__all__ = [
    'configure_logging',
    'ensure_dir',
    'get_app_data_dir',
    'read_json',
    'write_json_atomic',
]
