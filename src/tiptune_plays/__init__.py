"""TipTune play validation and counting service."""

__version__ = "0.1.0"
