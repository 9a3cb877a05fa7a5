"""
Utilities - Logging
"""

from .logger import Logger, DeterministicLogger

__all__ = ['Logger', 'DeterministicLogger']
