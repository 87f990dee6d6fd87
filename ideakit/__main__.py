"""
Entry point for running ideakit as a module.

Usage: python -m ideakit [command] [options]
"""

from ideakit.cli.parser import main

if __name__ == "__main__":
    main()
