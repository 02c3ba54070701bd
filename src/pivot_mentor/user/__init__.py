"""User settings management."""
