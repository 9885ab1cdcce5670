"""
Core Module - Shared building blocks.

Components:
- errors: ToolkitError, the base of every toolkit exception

Design Principle:
Feature packages (src/tools/, src/attempt/, src/section/) raise subclasses of
ToolkitError defined next to the code that raises them.
"""

from src.core.errors import ToolkitError

__all__ = [
    "ToolkitError",
]
