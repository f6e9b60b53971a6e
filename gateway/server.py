from __future__ import annotations

import hmac
import json
import logging
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.responses import Response
import uvicorn

from contractcheck.config import Settings
from contractcheck.formatter import format_json, summarize
from contractcheck.logging_utils import setup_logging
from contractcheck.manifest import ManifestError, parse_manifest, run_manifest

log = logging.getLogger("gateway")


def constant_time_equal(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


app = FastAPI(title="Contract Check", version="0.1.0")

settings: Settings | None = None


@app.on_event("startup")
def _startup() -> None:
    global settings
    load_dotenv()
    settings = Settings.load()
    setup_logging(settings.log_level, json_output=settings.log_json)
    log.info("Gateway started")


@app.get("/health")
def health() -> dict[str, Any]:
    return {"ok": True}


@app.post("/validate")
async def validate(request: Request, authorization: Optional[str] = Header(default=None)) -> Response:
    assert settings is not None

    # Auth: Authorization: Bearer <token>
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing Authorization: Bearer <token>")
    token = authorization.split(" ", 1)[1].strip()
    if not constant_time_equal(token, settings.gateway_token):
        raise HTTPException(status_code=403, detail="Invalid token")

    body = await request.body()
    if len(body) > settings.max_request_body_bytes:
        raise HTTPException(status_code=413, detail=f"Payload too large (>{settings.max_request_body_bytes} bytes)")

    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    try:
        manifest = parse_manifest(payload)
        # Relative schema/payload paths resolve against the server's working directory.
        results = await run_manifest(manifest, base_dir=Path.cwd(), settings=settings)
    except ManifestError as e:
        raise HTTPException(status_code=400, detail=str(e))

    summary = summarize(results)
    log.info("Validated %d contracts via gateway (%d failed)", summary.total, summary.failed)
    return Response(content=format_json(results), media_type="application/json")


def main() -> None:
    load_dotenv()
    cfg = Settings.load()
    uvicorn.run("gateway.server:app", host=cfg.gateway_host, port=cfg.gateway_port, reload=False)


if __name__ == "__main__":
    main()
