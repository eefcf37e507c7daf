"""
Main entry point for the kde panel.
This file allows running the panel as a module: python -m kde_panel
"""

from .cli.cli import main

if __name__ == "__main__":
    main()
