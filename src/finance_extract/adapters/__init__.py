"""Generative model adapters."""
