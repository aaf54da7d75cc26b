"""Stateless response kernels and advisory rules."""
