"""
Videlix Core Module

Contains core systems including configuration, constants, exceptions,
logging and retry utilities.
"""

from .config import VidelixConfig, load_config, get_config, set_config
from .constants import *
from .exceptions import *
from .logging_config import setup_logging, get_logger

__all__ = [
    'VidelixConfig',
    'load_config',
    'get_config',
    'set_config',
    'setup_logging',
    'get_logger',
]
