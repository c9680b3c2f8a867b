# betiq/main.py
from __future__ import annotations

import logging

from dotenv import find_dotenv, load_dotenv

# -------------------------------------------------
# LOAD .env ONCE (top of file, before any settings are read)
# -------------------------------------------------
load_dotenv(find_dotenv(usecwd=True), override=False)

from contextlib import asynccontextmanager  # noqa: E402

from fastapi import FastAPI  # noqa: E402
from fastapi.responses import RedirectResponse  # noqa: E402
from starlette.exceptions import HTTPException as StarletteHTTPException  # noqa: E402

from betiq.authz_errors import http_exception_handler  # noqa: E402
from betiq.config import get_settings  # noqa: E402
from betiq.database import Base, engine  # noqa: E402
from betiq.routers import account, matches, predictions, vip  # noqa: E402

logging.basicConfig(
    level=getattr(logging, get_settings().log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("betiq")


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    settings = get_settings()
    logger.info(
        "BetIQ backend ready (%d VIP codes loaded, VIP window %d days)",
        len(settings.vip_codes),
        settings.vip_duration_days,
    )
    yield


# -------------------------------------------------
# APP SETUP
# -------------------------------------------------
app = FastAPI(title="BetIQ Backend", version="1.0.0", lifespan=lifespan)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)

app.include_router(account.router)
app.include_router(matches.router)
app.include_router(predictions.router)
app.include_router(vip.router)


# -------------------------------------------------
# ROOT + HEALTH
# -------------------------------------------------
@app.get("/")
def root():
    return RedirectResponse(url="/docs")


@app.get("/health")
def health():
    return {"status": "ok"}
