"""
SDK for Connections Solver.

Provides programmatic access to puzzle solving and cost accounting.
"""

from .openai_client import ConnectionsSolver

__all__ = ["ConnectionsSolver"]
