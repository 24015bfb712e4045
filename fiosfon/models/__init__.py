"""Pydantic models for privacy records, chart entries and scores."""
