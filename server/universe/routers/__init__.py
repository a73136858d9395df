"""API routers for the UniVerse web tier."""

from universe.routers import (
    admin,
    announcements,
    auth,
    chatbot,
    clubs,
    events,
    memberships,
    payments,
    uploads,
)  # noqa: F401
