"""Pydantic schemas for the resume document, the layout tree and the API."""
