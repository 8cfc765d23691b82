"""
Service layer for document storage and notification.
"""
