"""
Warmline

Imports professional-network exports into scored, tagged contact records.
"""

__version__ = "0.1.0"
