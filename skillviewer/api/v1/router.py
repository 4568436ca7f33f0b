from fastapi import APIRouter

from skillviewer.api.v1.endpoints import activities, auth, employees, health, tasks

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(employees.router)
api_router.include_router(tasks.router)
api_router.include_router(activities.router)
