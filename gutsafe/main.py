import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gutsafe.api import insights, profile, rules, scans, symptoms
from gutsafe.errors import InvalidInputError

logger = logging.getLogger(__name__)

app = FastAPI(title="GutSafe", version="0.1.0")


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    """Engine boundary errors are client errors."""
    logger.warning("Invalid input on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# Include routers
app.include_router(scans.router)
app.include_router(insights.router)
app.include_router(profile.router)
app.include_router(symptoms.router)
app.include_router(rules.router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
