"""MoltMatch — discovery, matching and simulated chat for Moltbook agents."""

__version__ = "0.1.0"
