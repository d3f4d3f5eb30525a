"""Bookings app package.

Renter booking requests for vehicle and driver listings. Creating and
accepting a booking runs the availability conflict check under the same
per-listing lock that block creation takes, so a booking and a block can
never both be committed over the same dates.
"""
