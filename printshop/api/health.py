# printshop/api/health.py

from fastapi import APIRouter

from printshop.core.config import settings


router = APIRouter()


@router.get("/health")
def health():
    return {"status": "ok", "app": settings.app_name, "env": settings.env}
