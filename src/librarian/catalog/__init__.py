"""Catalog storage access and input validation."""
