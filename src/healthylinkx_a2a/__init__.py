"""A2A agent exposing the Healthylinkx doctor search."""

__version__ = "1.0.0"
