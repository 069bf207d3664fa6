"""
StakePool CLI Package
"""

from .main import cli, main

__all__ = ["cli", "main"]
