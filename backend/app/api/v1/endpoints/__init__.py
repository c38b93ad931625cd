# API endpoints
from . import (
    auth, mfa, roles, faculties, lectures, exams, links, content, community,
    wallet, ads, payments, events, notifications, dashboard, health,
)

__all__ = [
    "auth", "mfa", "roles", "faculties", "lectures", "exams", "links", "content", "community",
    "wallet", "ads", "payments", "events", "notifications", "dashboard", "health",
]
