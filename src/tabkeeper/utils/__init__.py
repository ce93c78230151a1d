"""Utility helpers shared across tabkeeper."""
