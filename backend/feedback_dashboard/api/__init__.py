from fastapi import APIRouter
from feedback_dashboard.api import routes

router = APIRouter()
router.include_router(routes.router)
