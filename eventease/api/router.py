from fastapi import APIRouter

from eventease.api.v1 import events, users

# Initialize API router
api_router = APIRouter()

# Include routers from different modules
api_router.include_router(events.router, prefix="/events", tags=["Events"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
