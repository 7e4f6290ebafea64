"""
Operations package - output formatting and error mapping for the CLI.

Keeps CLI commands thin: printers own presentation, mappers own the
exception-to-exit-code policy.
"""
from .mappers import exit_code_for, run_and_exit

__all__ = ["exit_code_for", "run_and_exit"]
