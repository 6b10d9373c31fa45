"""Hide feed items that fail a configurable filter on a live X timeline."""

__version__ = "0.1.0"
