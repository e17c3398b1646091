"""FastAPI entrypoint for the MelanoScan backend service."""
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

from .config import settings
from .routes import scan
from .schemas import HealthResponse
from .services import models
from .services.model_loader import ModelLoader, ModelState


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.model_task = models.get_model_loader().start()
    yield
    if models.get_pipeline.cache_info().currsize:
        models.get_pipeline().close()


app = FastAPI(title="MelanoScan API", version="1.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(scan.router, prefix="/v1.1", tags=["scan"])

if settings.object_store == "local":
    app.mount(
        "/uploads",
        StaticFiles(directory=settings.local_storage_dir, check_dir=False),
        name="uploads",
    )


@app.get("/", response_class=PlainTextResponse, tags=["system"])
async def welcome() -> str:
    return settings.welcome_message


@app.get("/health", response_model=HealthResponse, tags=["system"])
async def healthcheck(loader: ModelLoader = Depends(models.get_model_loader)) -> HealthResponse:
    """Readiness endpoint; ``degraded`` until the classifier is loaded."""
    state = loader.state
    return HealthResponse(
        status="ok" if state is ModelState.READY else "degraded",
        model=state.value,
    )
