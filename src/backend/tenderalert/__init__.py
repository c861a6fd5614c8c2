"""
TenderAlert Pro backend.

Kenyan government tender discovery, smart matching and subscription service.
"""

__version__ = "1.0.0"
