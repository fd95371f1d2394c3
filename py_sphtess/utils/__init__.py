"""
Utilities: logging setup and random node sets.
"""
