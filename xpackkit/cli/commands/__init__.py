"""
Command implementations; each module exposes run(args) -> exit code.
"""
