"""Serverless functions backing the Pivot Mentor application."""
