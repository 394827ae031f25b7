"""Shared models, enums and exceptions."""
