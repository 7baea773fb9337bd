"""
Flow Builder — workflow graph model and validation engine for the
visual workflow editor.
"""

__version__ = "0.1.0"
