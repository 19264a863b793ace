from fastapi import APIRouter
from vodcatalog.api.endpoints import vod

api_router = APIRouter()
api_router.include_router(vod.router, prefix="/vod", tags=["vod"])
