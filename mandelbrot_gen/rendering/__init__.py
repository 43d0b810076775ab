"""Palettes, color selection and image output."""
