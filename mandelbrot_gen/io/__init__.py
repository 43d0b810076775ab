"""Configuration file support."""
