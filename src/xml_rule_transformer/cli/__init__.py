"""Command-line interface module for XML Rule Transformer.

This module provides the xml-rule-transform tool for applying JSON rule files
or Python callbacks to XML files and for checking well-formedness.
"""

from .main import main

__all__ = ["main"]
