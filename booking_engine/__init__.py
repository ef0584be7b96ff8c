"""Contractor scheduling and booking engine."""
