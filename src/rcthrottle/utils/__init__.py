"""
Utilities

- terminal.py: rich console, logging setup, startup banner
"""

from .terminal import console, setup_logging, print_summary

__all__ = ['console', 'setup_logging', 'print_summary']
