"""Run the closure-build command line.

Usage:
    python -m closure_build app.js --mode simple
"""

from .cli import main

if __name__ == "__main__":
    main()
