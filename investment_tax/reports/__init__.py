"""
Report generation modules for console output.
"""

from .console import ConsoleReporter

__all__ = [
    "ConsoleReporter",
]
