"""Core request migration components."""
