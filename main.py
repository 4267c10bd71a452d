#main.py
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from api.admin import router as admin_router
from api.webhook import router as webhook_router
from core.services import Services, build_services
from settings import VERSION
from telemetry.logger import get_logger

logger = get_logger(__name__)


def create_app(services: Optional[Services] = None, *, rebuild_on_startup: bool = True) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "services", None) is None:
            app.state.services = build_services()
        if rebuild_on_startup:
            report = await app.state.services.knowledge.rebuild()
            logger.info(f"KB startup build: {report.status} ({report.chunks} chunks)")
        yield
        aclose = getattr(app.state.services.transport, "aclose", None)
        if aclose is not None:
            await aclose()

    app = FastAPI(title="SOL Assistant", version=VERSION, lifespan=lifespan)
    app.state.services = services
    app.include_router(webhook_router)
    app.include_router(admin_router)

    @app.get("/", response_class=PlainTextResponse)
    def health():
        return f"WhatsApp SOL assistant is running ✅ v{VERSION}"

    @app.get("/version", response_class=PlainTextResponse)
    def version():
        return f"SOL Assistant version {VERSION}"

    return app


app = create_app()
