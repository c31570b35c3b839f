"""Structured event logging."""
