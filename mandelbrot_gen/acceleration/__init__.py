"""Accelerated computation backends."""
