"""
版本信息 API
"""
from fastapi import APIRouter

from api.constants import API_VERSION, APP_VERSION

router = APIRouter()


@router.get("/api/version")
async def get_version():
    """获取当前版本信息"""
    return {
        "version": APP_VERSION,
        "api": API_VERSION,
    }
