"""
HTTP service: POST a flat JSON record, get the filled bulletin back.

Run with ``bulletin-server`` or ``uvicorn --factory bulletin_filler.server:create_app``.
"""

import json

from fastapi import FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse, Response

from . import __version__
from .config import Settings, get_settings
from .errors import TemplateLoadError
from .filler import fill_bulletin
from .logging_config import configure_logging, get_logger
from .rulesets import build_rules
from .transforms import get_name_splitter

logger = get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    name_splitter = get_name_splitter(settings.name_strategy)
    # Unknown template versions and name strategies are rejected here
    build_rules(settings.template_version, name_splitter=name_splitter)

    app = FastAPI(title="Bulletin Filler", version=__version__)
    app.state.settings = settings

    @app.get("/", response_class=PlainTextResponse)
    def index():
        return "PDF Filler Service is running. Use POST /fill (JSON)."

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.post("/fill")
    async def fill(request: Request):
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > settings.max_body_bytes:
            raise HTTPException(status_code=413, detail="Request body too large")
        body = await request.body()
        if len(body) > settings.max_body_bytes:
            raise HTTPException(status_code=413, detail="Request body too large")
        try:
            data = json.loads(body) if body else None
        except ValueError:
            data = None
        if not isinstance(data, dict):
            logger.error("Invalid JSON body on /fill: expected a flat object")
            raise HTTPException(
                status_code=400,
                detail="Request body is invalid or missing (must be a flat JSON object)",
            )
        if not data:
            logger.warning("Empty record on /fill; generating a blank bulletin")

        try:
            result = await run_in_threadpool(
                fill_bulletin,
                settings.template_path,
                data,
                settings.template_version,
                century_pivot=settings.century_pivot,
                name_splitter=name_splitter,
            )
        except TemplateLoadError as e:
            logger.error("PDF template unavailable: %s", e)
            raise HTTPException(status_code=500, detail="Server error: PDF template missing or unreadable")
        except Exception as e:
            logger.exception("Failed to fill bulletin")
            raise HTTPException(status_code=500, detail=f"Server error while filling the PDF: {e}")

        return Response(
            content=result.pdf,
            media_type="application/pdf",
            headers={
                "Content-Disposition": f"attachment; filename={settings.download_name}",
                "X-Fill-Warnings": str(len(result.warnings)),
            },
        )

    return app


def main():
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("PDF filler service starting on port %s, template %s",
                settings.port, settings.template_path)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
