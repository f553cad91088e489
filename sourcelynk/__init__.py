"""Locate debug-information files and embed source link documents into them."""

__version__ = "0.3.0"
