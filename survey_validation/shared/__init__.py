"""Shared helpers used across the validation engine."""
