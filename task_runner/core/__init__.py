"""Core configuration, errors and infrastructure helpers."""
