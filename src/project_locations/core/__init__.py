"""
Core utilities for the project location subsystem.

Provides configuration management, logging and the error hierarchy.
"""

from .config import Config
from .logger import setup_logger, LoggerContext, SessionLogAdapter
from . import constants
from . import exceptions

__all__ = [
    "Config",
    "setup_logger",
    "LoggerContext",
    "SessionLogAdapter",
    "constants",
    "exceptions",
]
