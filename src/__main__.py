"""
Entry point for running pingprobe as a module.

Usage: python -m pingprobe [OPTIONS] COMMAND [ARGS]...
"""

from .cli import main

if __name__ == "__main__":
    main()
