"""
Admin API endpoints for the UniPortal admin dashboard.
All endpoints require the admin role or superuser privileges.
"""
from fastapi import APIRouter

from app.api.v1.endpoints.admin import (
    dashboard, users, role_requests, audit_logs, settings, payments, ads, wallets, events, notifications,
)

admin_router = APIRouter(prefix="/admin", tags=["Admin Dashboard"])

# Include all admin sub-routers
admin_router.include_router(dashboard.router, prefix="/dashboard", tags=["Admin Dashboard"])
admin_router.include_router(users.router, prefix="/users", tags=["Admin Users"])
admin_router.include_router(role_requests.router, prefix="/role-requests", tags=["Admin Roles"])
admin_router.include_router(audit_logs.router, prefix="/audit-logs", tags=["Admin Audit Logs"])
admin_router.include_router(settings.router, prefix="/settings", tags=["Admin Settings"])
admin_router.include_router(settings.security_router, prefix="/security", tags=["Admin Settings"])
admin_router.include_router(payments.gateways_router, prefix="/payment-gateways", tags=["Admin Payments"])
admin_router.include_router(payments.router, prefix="/payments", tags=["Admin Payments"])
admin_router.include_router(ads.settings_router, prefix="/ad-settings", tags=["Admin Ads"])
admin_router.include_router(ads.router, prefix="/ads", tags=["Admin Ads"])
admin_router.include_router(wallets.router, prefix="/wallets", tags=["Admin Wallets"])
admin_router.include_router(wallets.transactions_router, prefix="/transactions", tags=["Admin Wallets"])
admin_router.include_router(events.router, prefix="/events", tags=["Admin Events"])
admin_router.include_router(events.ticket_types_router, prefix="/ticket-types", tags=["Admin Events"])
admin_router.include_router(events.tickets_router, prefix="/tickets", tags=["Admin Events"])
admin_router.include_router(notifications.router, prefix="/notifications", tags=["Admin Notifications"])
