"""Business logic services for the Theater booking platform.

Service modules are imported directly (``from .services.booking_service import
BookingService``); the models package depends on ``seat_topology``, so this
package stays free of eager imports.
"""
