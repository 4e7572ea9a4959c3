"""Editing, persistence and rendering services."""
