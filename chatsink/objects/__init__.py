"""Pydantic models for topology, reconciliation results and configuration."""
