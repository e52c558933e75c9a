"""
Command-line interface for Connections Solver.
"""
