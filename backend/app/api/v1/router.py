from fastapi import APIRouter
from app.api.v1.endpoints import (
    auth, mfa, roles, faculties, lectures, exams, links, content, community,
    wallet, ads, payments, events, notifications, dashboard, health,
)
from app.api.v1.endpoints.admin import admin_router

api_router = APIRouter()

# Deep health checks (use /health/ready for the load balancer)
api_router.include_router(health.router)

# Accounts
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(mfa.router, prefix="/auth/mfa", tags=["Two-Factor Authentication"])
api_router.include_router(roles.router, prefix="/roles", tags=["Roles"])

# Academics
api_router.include_router(faculties.router, prefix="/faculties", tags=["Faculties"])
api_router.include_router(faculties.departments_router, prefix="/departments", tags=["Departments"])
api_router.include_router(lectures.router, prefix="/lectures", tags=["Lectures"])
api_router.include_router(lectures.timetable_router, prefix="/timetable", tags=["Timetable"])
api_router.include_router(exams.router, prefix="/exams", tags=["Exams"])

# Links, content and community
api_router.include_router(links.community_links_router, prefix="/community-links", tags=["Community Links"])
api_router.include_router(links.custom_links_router, prefix="/custom-links", tags=["Custom Links"])
api_router.include_router(content.blogs_router, prefix="/blogs", tags=["Blog"])
api_router.include_router(content.contact_router, prefix="/contact", tags=["Contact"])
api_router.include_router(community.router, prefix="/community", tags=["Community"])

# Money
api_router.include_router(wallet.router, prefix="/wallet", tags=["Wallet"])
api_router.include_router(ads.router, prefix="/ads", tags=["Ads"])
api_router.include_router(payments.router, prefix="/payments", tags=["Payments"])

# Events and notifications
api_router.include_router(events.router, prefix="/events", tags=["Events"])
api_router.include_router(events.tickets_router, prefix="/tickets", tags=["Tickets"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])

api_router.include_router(dashboard.router, tags=["Dashboard"])

# Admin dashboard routes (/admin/*)
api_router.include_router(admin_router)
