"""Pydantic models for log records."""
