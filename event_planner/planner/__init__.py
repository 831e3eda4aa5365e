"""Ownership-scoped category and event services."""
