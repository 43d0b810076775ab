"""Fractal variants and the escape-time engine."""
