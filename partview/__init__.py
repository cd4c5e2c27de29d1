"""Render-ready normalization of agent tool-call parts and unified diffs."""

__version__ = "0.3.0"
