from fastapi import APIRouter
from app.api.v1.endpoints import advisers, auth, consultations, health, projects, students, subjects

api_router = APIRouter()

api_router.include_router(health.router)


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Simple health check for load balancers"""
    return {"status": "healthy", "service": "capstone-consult"}


api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(subjects.router, prefix="/subjects", tags=["Subjects"])
api_router.include_router(students.router, prefix="/students", tags=["Students"])
api_router.include_router(advisers.router, prefix="/advisers", tags=["Advisers"])
api_router.include_router(projects.router, prefix="/projects", tags=["Capstone Projects"])
api_router.include_router(consultations.router, prefix="/consultations", tags=["Consultations"])
