"""
Shared utilities: logging setup, exception hierarchy, validation, hashing.
"""
