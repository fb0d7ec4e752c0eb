"""Strawberry types for the marketplace graph."""
