"""
Entry point for running xpackkit CLI as a module.

Usage: python -m xpackkit [command] [options]
"""

from xpackkit.cli.parser import main

if __name__ == "__main__":
    main()
