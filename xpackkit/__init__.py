"""
xpackkit - install the native binaries of xPack packages.

Resolves the archive a package declares for the running platform, fetches it
through an integrity-checked content cache and extracts it into the package
folder.
"""

__version__ = "0.1.0"
