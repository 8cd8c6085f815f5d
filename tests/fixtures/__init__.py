"""Test fixtures for xpackkit tests.

- packages: in-memory tar/zip archives and binary package folders

Import fixtures in your tests using:
    from tests.fixtures.packages import binary_package, write_package
"""

__all__ = [
    "packages",
]
