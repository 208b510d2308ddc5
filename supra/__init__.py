"""Supra: conversational multimodal dish search over a restaurant catalog."""

__version__ = "0.1.0"
