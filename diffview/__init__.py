"""
Line diff rendering engine.

Turns a patch, or two raw texts plus the original file, into an ordered
row model with word-level highlights, syntax tokens and expandable
hidden-context gaps.
"""

__version__ = "0.1.0"
