"""Shared domain, infrastructure and utility code."""
