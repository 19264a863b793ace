import logging
import sys
from fastapi import FastAPI
from vodcatalog.api.api import api_router
from vodcatalog.core.config import settings
from vodcatalog.db.session import SessionLocal
from vodcatalog.services.vod.store import CatalogStore

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stdout
)

# Create tables and patch legacy columns before serving requests
_db = SessionLocal()
try:
    CatalogStore(_db).ensure_schema()
finally:
    _db.close()

app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION)

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health")
def health():
    return {"status": "ok", "version": settings.VERSION}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
