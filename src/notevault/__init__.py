"""
NoteVault Backend - Personal notes with trash, history and share links.
"""

__version__ = "1.0.0"
