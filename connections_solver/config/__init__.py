"""
Configuration and logging setup for Connections Solver.
"""
