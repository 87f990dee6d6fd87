"""
Entry point for running the ideakit CLI as a module.

Usage: python -m ideakit.cli [command] [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
