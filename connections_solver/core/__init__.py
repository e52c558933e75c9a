"""
Core modules for Connections Solver.

This package contains pricing resolution, cost calculation and
normalization of model responses into puzzle solutions.
"""
