"""
Toolkit error hierarchy.

Every error the toolkit raises on purpose derives from ToolkitError so hosts can
catch toolkit failures without catching unrelated bugs. The concrete errors live
next to the code that raises them.
"""


class ToolkitError(Exception):
    """Base class for errors raised by the assessment toolkit."""
    pass
