"""Email domain - appointment notifications, templates and delivery logs"""

__all__ = []
