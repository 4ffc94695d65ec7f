"""Entry point module for executing cmdprove as a Python module.

This module enables running cmdprove via `python -m cmdprove`, which
delegates to the CLI main function.
"""

from cmdprove.cli import main

if __name__ == "__main__":
    main()
