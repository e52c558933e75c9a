"""
Connections Solver.

Solves Connections word puzzles from images with a vision chat model
and reports what each request cost.
"""

__version__ = "0.1.0"
