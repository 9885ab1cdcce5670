"""
Toolkit Module - Composition root.

Components:
- coordinator: ToolkitCoordinator and its service bundle
"""

from src.toolkit.coordinator import ToolkitCoordinator, ToolkitServiceBundle

__all__ = [
    "ToolkitCoordinator",
    "ToolkitServiceBundle",
]
