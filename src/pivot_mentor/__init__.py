"""Pivot Mentor: AI mentor chat client and serverless functions for student entrepreneurs."""

__version__ = "0.1.0"
