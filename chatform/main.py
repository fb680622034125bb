# /chatform/main.py

import time
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from chatform.config.settings import settings
from chatform.utils.lifecycle import lifespan
from chatform.utils.metrics import response_time_histogram
from chatform.routes import conversations, public

app = FastAPI(
    title="Chat Form Engine",
    version="1.0.0",
    description="Template-driven conversational forms over HTTP",
    lifespan=lifespan,
    openapi_url=f"/api/{settings.api_version}/openapi.json" if settings.environment != "production" else None,
    docs_url=f"/api/{settings.api_version}/docs" if settings.environment != "production" else None,
    redoc_url=None,
)

# --- Middleware ---
if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

@app.middleware("http")
async def performance_middleware(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    # Label by route template so conversation ids do not become label values.
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    response_time_histogram.labels(endpoint=endpoint).observe(process_time)
    response.headers["X-Process-Time"] = str(process_time)
    return response

# --- API Routers ---
app.include_router(public.router)
app.include_router(conversations.router, prefix=f"/api/{settings.api_version}")


def run():
    """Console entry point for local development."""
    uvicorn.run(
        "chatform.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
    )


if __name__ == "__main__":
    run()
