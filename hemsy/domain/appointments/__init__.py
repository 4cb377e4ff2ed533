"""Appointments domain - scheduling lifecycle and client confirmation links"""

__all__ = []
