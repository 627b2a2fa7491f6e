"""Creative Engine - ad script to published video creative pipeline."""

__version__ = "0.1.0"
