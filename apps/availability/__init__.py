"""Availability app package.

Provider-declared unavailability for vehicle and driver listings: one-off
blocks, weekly recurring patterns with dated ("future") changes, bulk
blocking across listings, and the conflict checks that keep blocks and
committed bookings from overlapping. Conflict notifications for pending
booking requests go through a transactional outbox drained by Celery.
"""

