"""diffhelper.

Translates raw change-description lines into diff output, passing
unrecognized lines through unchanged.
"""

__version__ = "1.0.0"

__all__ = []
