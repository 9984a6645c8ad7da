"""
Main API router aggregator
"""
from fastapi import APIRouter

from app.api.v1.endpoints import (
    calendar,
    cases,
    chambers,
    documents,
    drafting,
    lawyers,
    leads,
    messages,
    notifications,
    profile,
    time_entries,
    upload,
)

api_router = APIRouter()

# Include routers
api_router.include_router(profile.router)
api_router.include_router(chambers.router)
api_router.include_router(lawyers.router)
api_router.include_router(cases.router)
api_router.include_router(cases.tasks_router)
api_router.include_router(documents.router)
api_router.include_router(upload.router)
api_router.include_router(messages.router)
api_router.include_router(leads.router)
api_router.include_router(notifications.router)
api_router.include_router(time_entries.router)
api_router.include_router(calendar.router)
api_router.include_router(drafting.router)
