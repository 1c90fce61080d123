import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlmodel import Session

from core.config import settings
from core.database import create_db_and_tables, engine
from core.exceptions import DeadlineGuardError
from core.template_catalog import seed_deadline_templates
from routes.auth import router as auth_router
from routes.deadlines import router as deadlines_router
from routes.invitation import router as invitation_router
from routes.jobs import router as jobs_router
from routes.organization import router as organization_router
from routes.payment import router as payment_router
from routes.profile import router as profile_router
from routes.templates import router as templates_router

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# =========================================
# 🏁 Lifespan (DB initialization)
# =========================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    with Session(engine) as session:
        seed_deadline_templates(session)
    logger.info("✅ Database ready (environment=%s)", settings.ENVIRONMENT)
    yield
    logger.info("✅ Application shutting down.")


# =========================================
#  ✅ FastAPI App
# =========================================
app = FastAPI(lifespan=lifespan, title="DeadlineGuard Backend")

allowed_origins = [
    settings.FRONTEND_URL,
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DeadlineGuardError)
async def deadlineguard_error_handler(request: Request, exc: DeadlineGuardError):
    if exc.status_code >= 500:
        logger.error("❌ %s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# =========================================
# 📦 Routers
# =========================================
app.include_router(auth_router, prefix="/auth", tags=["Authentication"])
app.include_router(profile_router)
app.include_router(deadlines_router)
app.include_router(templates_router)
app.include_router(organization_router)
app.include_router(invitation_router)
app.include_router(payment_router)
app.include_router(jobs_router)


# =========================================
# 🩺 Health Check
# =========================================
@app.get("/health")
def health_check():
    return {"status": "ok", "message": "Backend is running"}


@app.get("/")
def read_root():
    return {"message": "Welcome to DeadlineGuard Backend!"}
