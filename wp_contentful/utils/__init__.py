"""
Utility helpers used by the migration tool.

This subpackage exposes convenience functions for structured event logs,
redirect map generation and pre-flight checks.
"""

from .errors import ERRORS, configure_reports, report_error, report_ok
from .redirects import generate_redirects_csv

__all__ = ["ERRORS", "configure_reports", "report_error", "report_ok", "generate_redirects_csv"]
