"""
Terminal panel for local Kubernetes development environments managed by the kde CLI.
"""

__version__ = "0.1.0"
