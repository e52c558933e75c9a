"""
Smoke tests for package imports.
"""


def test_package_imports():
    """Verify the public entry points import."""
    import connections_solver
    from connections_solver.sdk import ConnectionsSolver
    from connections_solver.cli.main import app

    assert connections_solver.__version__
    assert ConnectionsSolver is not None
    assert app is not None
