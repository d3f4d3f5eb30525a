"""Notifications app package.

Stores in-app notifications for marketplace users, such as availability
conflict warnings raised when a provider blocks dates that overlap a
pending booking request.
"""
