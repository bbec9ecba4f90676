# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.

"""FastAPI application exposing the TCF decoder.

**HTTP Endpoints**

* ``POST /decode`` - Decode a consent string and report on a list of
  vendors (defaults to ``TCF_DEFAULT_VENDOR_IDS``).

* ``POST /vendors/{vendor_id}`` - Resolve one vendor's effective consent
  and legitimate-interest purposes after publisher restrictions.

* ``POST /analyze`` - Join the decoded string with the Global Vendor List
  loaded at startup and return per-vendor, per-purpose analysis.

* ``GET /healthz`` - Liveness check with GVL load status.

Decode failures are returned as HTTP 400 with ``{"code", "message"}``.

**GVL**

If ``TCF_GVL_PATH`` is set, the GVL JSON is read from local disk once at
startup and kept read-only on ``app.state.gvl``.  The service never
downloads the GVL.

**Logging**

Structured JSON logging (or plain text, per ``TCF_LOG_FORMAT``) is
configured at startup using the ``TCF_LOG_LEVEL`` setting.
"""

from __future__ import annotations

import json
import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tcfkit.analysis import analyze_vendors, summarize_vendors
from tcfkit.api_models import AnalyzeResponse, DecodeRequest, DecodeResponse, ErrorDetail, VendorRequest
from tcfkit.config import GVL_PATH, HTTP_HOST, HTTP_PORT, LOG_FORMAT, LOG_LEVEL, MAX_STRING_LENGTH
from tcfkit.gvl import GlobalVendorList, load_gvl
from tcfkit.tcf import TCFDecodeError, GVLError, decode, decode_report, resolve, restriction_entries, vendor_restrictions


# ======================================================================
# Structured JSON logging
# ======================================================================


class _JSONFormatter(logging.Formatter):
    """Structured JSON log formatter.

    Produces one JSON object per log line with fields ``timestamp``,
    ``level``, ``logger``, ``message``, ``module`` and ``funcName``, plus
    ``exception`` when the record carries one.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "funcName": record.funcName,
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def _configure_logging() -> None:
    """Configure root logging for the service.

    All existing handlers are removed first to prevent duplicate output
    when running under uvicorn.
    """
    root = logging.getLogger()

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if LOG_FORMAT.lower() == "json":
        handler.setFormatter(_JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )

    root.addHandler(handler)
    root.setLevel(getattr(logging, LOG_LEVEL.upper(), logging.INFO))

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


logger = logging.getLogger("tcf.main")


# ======================================================================
# Application lifespan
# ======================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and load the local GVL, if one is configured."""
    _configure_logging()
    logger.info(
        "tcfkit starting: HTTP=%s:%d, log_level=%s, gvl_path=%s",
        HTTP_HOST, HTTP_PORT, LOG_LEVEL, GVL_PATH,
    )

    app.state.gvl = None
    if GVL_PATH:
        try:
            app.state.gvl = load_gvl(GVL_PATH)
        except GVLError as exc:
            logger.error("GVL not loaded: %s", exc.message)

    yield

    logger.info("tcfkit shutdown complete")


# ======================================================================
# FastAPI application
# ======================================================================

app = FastAPI(
    title="tcfkit",
    description=(
        "IAB TCF consent-string decoder. Decodes the Core segment of "
        "TCF v2.0 / v2.2 strings and resolves per-vendor consent after "
        "publisher restrictions."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

# Permissive for standalone deployment; restrict origins in production.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _current_gvl() -> Optional[GlobalVendorList]:
    return getattr(app.state, "gvl", None)


def _error(code: str, message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        content=ErrorDetail(code=code, message=message).model_dump(),
        status_code=status_code,
    )


def _too_long(tc_string: str) -> Optional[JSONResponse]:
    if len(tc_string) > MAX_STRING_LENGTH:
        return _error(
            "TCF_STRING_TOO_LONG",
            f"Consent string length {len(tc_string)} exceeds maximum {MAX_STRING_LENGTH}",
            413,
        )
    return None


@app.exception_handler(TCFDecodeError)
async def decode_error_handler(request: Request, exc: TCFDecodeError) -> JSONResponse:
    logger.info("Decode failed on %s: code=%s message=%s", request.url.path, exc.code, exc.message)
    return _error(exc.code, exc.message, 400)


# ======================================================================
# Endpoints
# ======================================================================


@app.post(
    "/decode",
    response_model=DecodeResponse,
    summary="Decode a TCF consent string",
    tags=["decode"],
)
async def decode_endpoint(request: DecodeRequest):
    """Decode the Core segment and report on the requested vendors."""
    rejected = _too_long(request.tc_string)
    if rejected is not None:
        return rejected

    report = decode_report(request.tc_string, request.vendor_ids, lenient=request.lenient)
    logger.info(
        "POST /decode complete: version=%s cmp_id=%d vendors=%d",
        report.version_tag, report.model.cmp_id, len(report.vendors),
    )
    return report.to_dict()


@app.post(
    "/vendors/{vendor_id}",
    summary="Resolve one vendor",
    tags=["decode"],
)
async def vendor_endpoint(vendor_id: int, request: VendorRequest):
    """Resolve effective purposes for *vendor_id* after restrictions."""
    rejected = _too_long(request.tc_string)
    if rejected is not None:
        return rejected

    model = decode(request.tc_string, lenient=request.lenient)
    info = resolve(model, vendor_id)
    data = info.to_dict()
    data["restrictions"] = restriction_entries(vendor_restrictions(model, vendor_id))
    return data


@app.post(
    "/analyze",
    response_model=AnalyzeResponse,
    summary="Analyze vendors against the Global Vendor List",
    tags=["analysis"],
)
async def analyze_endpoint(request: DecodeRequest):
    """Per-vendor, per-purpose analysis using the startup GVL."""
    gvl = _current_gvl()
    if gvl is None:
        return _error("GVL_NOT_LOADED", "No Global Vendor List is loaded", 503)

    rejected = _too_long(request.tc_string)
    if rejected is not None:
        return rejected

    model = decode(request.tc_string, lenient=request.lenient)
    analyses = analyze_vendors(model, gvl, request.vendor_ids)
    return AnalyzeResponse(
        version=model.version_tag,
        vendorListVersion=model.vendor_list_version,
        gvlVendorListVersion=gvl.vendor_list_version,
        vendors=[a.to_dict() for a in analyses],
        summary=summarize_vendors(analyses).to_dict(),
    )


@app.get(
    "/healthz",
    summary="Health check",
    tags=["health"],
)
async def healthz() -> JSONResponse:
    """Return service status and GVL load state."""
    gvl = _current_gvl()
    gvl_status: Dict[str, Any] = {"loaded": gvl is not None}
    if gvl is not None:
        gvl_status["vendorListVersion"] = gvl.vendor_list_version
        gvl_status["vendors"] = len(gvl.vendors)

    return JSONResponse(
        content={"status": "ok", "gvl": gvl_status},
        status_code=200,
    )


# ======================================================================
# Application runner (for direct invocation)
# ======================================================================


def main() -> None:
    """Run tcfkit using uvicorn.

    For production deployments, use uvicorn directly::

        uvicorn tcfkit.main:app --host 0.0.0.0 --port 8000
    """
    import uvicorn

    _configure_logging()

    uvicorn.run(
        "tcfkit.main:app",
        host=HTTP_HOST,
        port=HTTP_PORT,
        log_level=LOG_LEVEL.lower(),
        reload=False,
    )


if __name__ == "__main__":
    main()
