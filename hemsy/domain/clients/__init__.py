"""Clients domain - customer records for a shop"""

__all__ = []
