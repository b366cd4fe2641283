import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from lantern.auth.utils import seed_admin
from lantern.config import settings
from lantern.db import init_db
from lantern.errors import InvalidInput, LanternError
from lantern.hacking.services import build_services

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    seed_admin()
    services = build_services()
    app.state.services = services
    if settings.decay_backend == "inline":
        await services.decay.reset_now()
        services.decay.start()
    logger.info("Lantern server started")
    yield
    await services.aclose()
    logger.info("Lantern server stopped")


app = FastAPI(title="Lantern", version="0.1.0", lifespan=lifespan)


@app.exception_handler(LanternError)
async def lantern_error_handler(request: Request, exc: LanternError):
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    fields = ", ".join(".".join(str(p) for p in err["loc"][1:]) for err in exc.errors())
    error = InvalidInput(f"Invalid or missing fields: {fields}" if fields else None)
    return JSONResponse(error.to_dict(), status_code=error.status_code)


@app.get("/health")
async def health():
    return {"status": "ok"}


# Import routers after app is created to avoid circular imports
from lantern.auth.router import router as auth_router  # noqa: E402
from lantern.hacking.router import router as hacking_router  # noqa: E402
from lantern.hacking.ws import ws_router  # noqa: E402
from lantern.rounds.router import router as rounds_router  # noqa: E402

app.include_router(auth_router)
app.include_router(hacking_router)
app.include_router(rounds_router)
app.include_router(ws_router)
