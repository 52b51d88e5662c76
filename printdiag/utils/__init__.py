"""
Utility modules for PrintDiag.

This package contains shared helpers used throughout the PrintDiag
codebase, including exception handling for transport calls.
"""

from printdiag.utils.api_error_handler import handle_transport_errors

__all__ = [
    "handle_transport_errors",
]
