# FILE: backend/tastelocal/main.py
# TASTELOCAL - APPLICATION ENTRY POINT

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
import logging
import os

from tastelocal.api.router import api_v1_router
from tastelocal.core.config import settings
from tastelocal.core.lifespan import lifespan

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# --- MIDDLEWARE ---
origins = [
    "http://localhost:5173",
    "http://localhost:8080",
]
origins.extend(settings.BACKEND_CORS_ORIGINS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_v1_router)

@app.get("/health", status_code=status.HTTP_200_OK, tags=["Health Check"])
def health_check():
    return {"status": "ok", "version": "1.0.0"}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run("tastelocal.main:app", host="0.0.0.0", port=port)
