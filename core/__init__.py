"""Core utilities: errors and observability."""
