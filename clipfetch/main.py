import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from rich.console import Console

from clipfetch.api import download, health, info
from clipfetch.config.settings import config
from clipfetch.core.errors import install_error_handlers
from clipfetch.core.logging import log_debug, new_request_id, setup_logging
from clipfetch.core.state import state
from clipfetch.infra.redis import close_redis, init_redis
from clipfetch.services.tools import probe_versions

console = Console()

app = FastAPI(
    title=config.api.title,
    description=config.api.description,
    version=config.api.version,
    docs_url="/docs" if config.api.debug else None,
    redoc_url=None
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.api.cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
    expose_headers=["Content-Disposition", "Content-Length"],
)

install_error_handlers(app)

@app.middleware("http")
async def request_context(request: Request, call_next):
    request.state.request_id = new_request_id()
    started = time.perf_counter()
    response = await call_next(request)
    log_debug(request, f"{request.method} {request.url.path} -> {response.status_code} "
                       f"({(time.perf_counter() - started) * 1000:.0f} ms)")
    return response

# Routes
app.include_router(health.router, tags=["Health"])
app.include_router(info.router, tags=["Info"])
app.include_router(download.router, tags=["Download"])

@app.on_event("startup")
async def startup_event():
    setup_logging()
    await probe_versions()

    if config.rate_limit.enabled:
        state.redis = await init_redis()

    base = f"http://localhost:{config.server.port}"
    console.print(f"[bold green]{config.api.title} v{config.api.version}[/bold green]")
    console.print(f"  yt-dlp {state.ytdlp_version} | ffmpeg {state.ffmpeg_version}")
    console.print(f"  Health check: {base}/health")
    console.print(f"  Download endpoint: {base}/download")
    console.print(f"  Info endpoint: {base}/info")

@app.on_event("shutdown")
async def shutdown_event():
    await close_redis()
