"""Workflow application layer."""
