"""Mercadito — small e-commerce backend.

Product catalog, shopping carts, checkout tickets, session auth and a
live product/chat feed over websockets, all backed by MongoDB.
"""

__version__ = "0.1.0"
