from fastapi import APIRouter

from taskmaster.api.routes import auth, logs, project_logs, projects

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(project_logs.router, prefix="/projects/{project_id}/logs", tags=["activity"])
api_router.include_router(logs.router, prefix="/logs", tags=["activity"])
