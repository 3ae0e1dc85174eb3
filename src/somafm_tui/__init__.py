"""Terminal browser and player for SomaFM channels."""

__version__ = "0.1.0"
