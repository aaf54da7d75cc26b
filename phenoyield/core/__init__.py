"""Simulation engine: profiles, model, stages and harvest."""
