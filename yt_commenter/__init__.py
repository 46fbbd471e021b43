"""
YouTube Commenter
Session-authenticated comment/reply synchronization and AI-assisted replies
"""

__version__ = "0.1.0"
