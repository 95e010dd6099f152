"""
Alta Parking Monitor - Services Package
"""
from .notification import NotificationService

__all__ = ["NotificationService"]
