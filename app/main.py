import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.config import settings
from app.db.exceptions import ConflictError, InvalidOperationError, NotFoundError, PermissionDeniedError
from app.db.locks import LockRegistry
from app.db.session import engine, init_models
from app.auth.api import router as auth_router
from app.users.api import router as users_router, stats_router
from app.friends.apifriends import router as friends_router
from app.groups.api import router as groups_router
from app.posts.api import router as posts_router
from app.geo.api import router as geo_router
from app.uploads.api import router as uploads_router

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models()
    # Un verrou par groupe / paire d'amis / post, propre à cette instance
    app.state.locks = LockRegistry()
    logger.info("Base de données initialisée")
    yield
    await engine.dispose()


app = FastAPI(title="Meetup Planner API", lifespan=lifespan)

# Création dossier des uploads
upload_dir = Path(settings.UPLOAD_DIR)
upload_dir.mkdir(parents=True, exist_ok=True)

# Fichiers uploadés servis en statique
app.mount("/uploads", StaticFiles(directory=str(upload_dir)), name="uploads")

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(stats_router)
app.include_router(friends_router)
app.include_router(groups_router)
app.include_router(posts_router)
app.include_router(geo_router)
app.include_router(uploads_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===============================
# ERREURS MÉTIER -> HTTP
# ===============================
@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ConflictError)
@app.exception_handler(InvalidOperationError)
@app.exception_handler(PermissionDeniedError)
async def bad_request_handler(request: Request, exc: Exception):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", message)
    logger.warning(f"Requête invalide {request.method} {request.url.path}: {message}")
    return JSONResponse(status_code=400, content={"detail": message})


@app.get("/")
async def root():
    return {"message": "Meetup Planner API"}
