# backend/checkin_api/main.py
import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from checkin_api import config

logging.basicConfig(
    level=config.log_level(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Ensure all SQLAlchemy models are imported so relationships resolve
import checkin_api.models  # noqa: F401,E402

from checkin_api.api import (  # noqa: E402
    auth,
    checkins,
    dashboard,
    elders,
    email,
    events,
    families,
    imports,
    integrations_cognito,
    kiosk,
    ministries,
    reports,
    uploads,
    users,
)
from checkin_api.api.system import router as system_router  # noqa: E402
from checkin_api.services.cognito.processor import WebhookError  # noqa: E402

logger = logging.getLogger(__name__)

app = FastAPI(title="Check-in API")

# --- CORS for the admin UI and kiosk ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(system_router)  # /, /api/health

app.include_router(auth.router, prefix="/api")          # /api/auth/login
app.include_router(auth.admins_router, prefix="/api")   # /api/admins

app.include_router(users.router, prefix="/api")         # /api/users
app.include_router(elders.router, prefix="/api")        # /api/elders
app.include_router(families.router, prefix="/api")      # /api/families
app.include_router(families.search_router, prefix="/api")  # /api/familySearch
app.include_router(ministries.router, prefix="/api")    # /api/ministries

app.include_router(events.router, prefix="/api")        # /api/events
app.include_router(checkins.router, prefix="/api")      # /api/checkins
app.include_router(kiosk.router, prefix="/api")         # /api/kiosk

app.include_router(reports.router, prefix="/api")       # /api/reports
app.include_router(dashboard.router, prefix="/api")     # /api/dashboard

app.include_router(imports.router, prefix="/api")       # /api/import/users
app.include_router(uploads.router, prefix="/api")       # /api/uploads/avatar
app.include_router(email.router, prefix="/api")         # /api/email/send-reports

# Cognito Forms webhooks
app.include_router(integrations_cognito.router, prefix="/api")  # /api/integrations/cognito/*

# Uploaded avatars
os.makedirs(config.upload_dir(), exist_ok=True)
app.mount("/uploads", StaticFiles(directory=config.upload_dir()), name="uploads")


@app.exception_handler(WebhookError)
async def handle_webhook_error(_: Request, exc: WebhookError):
    return JSONResponse(status_code=exc.status_code, content={"ok": False, "message": exc.message})


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})
