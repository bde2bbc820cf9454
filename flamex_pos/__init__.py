"""
Flamex POS

Point-of-sale backend for a single-location restaurant: orders, menu,
customers, riders, expenses and reporting.
"""

__version__ = "1.0.0"
