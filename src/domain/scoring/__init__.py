"""Scoring committee domain."""
