from fastapi import APIRouter
from .routes import router as demo_router

router = APIRouter()
router.include_router(demo_router)
