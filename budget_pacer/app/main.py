import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from budget_pacer.app.api.v1.router import api_router
from budget_pacer.app.config import get_settings
from budget_pacer.app.logging_config import setup_logging
from budget_pacer.app.services.period_utils import InvalidDateError

settings = get_settings()
setup_logging(settings.log_level, settings.log_json)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s", settings.app_name)
    yield
    logger.info("Shutting down %s", settings.app_name)

app = FastAPI(title=settings.app_name, lifespan=lifespan)

@app.exception_handler(InvalidDateError)
async def invalid_date_handler(request: Request, exc: InvalidDateError):
    logger.warning("Invalid date on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": str(exc)})

# Include all API routes
app.include_router(api_router, prefix=settings.api_prefix)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("budget_pacer.app.main:app", host="0.0.0.0", port=8000, reload=True)
