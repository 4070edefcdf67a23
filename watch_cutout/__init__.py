"""
Background removal for watch product photos.

Turns the plain backdrop of a still photo transparent while keeping the
watch, gold and rose-gold finishes included.
"""

__version__ = "1.0.0"
