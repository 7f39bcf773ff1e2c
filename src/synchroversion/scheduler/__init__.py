"""Periodic jobs driving the engine."""
