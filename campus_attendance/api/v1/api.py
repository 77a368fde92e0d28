# campus_attendance/api/v1/api.py
from fastapi import APIRouter

from campus_attendance.api.v1.endpoints import attendance, health, registrations

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(registrations.router)
api_router.include_router(attendance.router)
