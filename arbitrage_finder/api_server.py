import json
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from .config import configure_logging, get_settings
from .errors import InvalidRequestError, MethodNotAllowedError
from .pipeline import error_result, find_arbitrage


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

logger = logging.getLogger(__name__)

app = FastAPI(title="Polymarket/Kalshi Arbitrage Finder", version="0.1.0")
configure_logging(get_settings().log_level)


def _json_response(status_code: int, envelope: dict) -> JSONResponse:
    return JSONResponse(envelope, status_code=status_code, headers=CORS_HEADERS)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.api_route("/arbitrage-finder", methods=ALL_METHODS)
async def arbitrage_finder(request: Request):
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)

    logger.info(f"Arbitrage finder received request: {request.method}")

    if request.method != "POST":
        err = MethodNotAllowedError("Method not allowed. Use POST.")
        result = error_result(err.status_code, str(err))
        return _json_response(result.status_code, result.envelope)

    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        err = InvalidRequestError("Invalid JSON in request body")
        result = error_result(err.status_code, str(err))
        return _json_response(result.status_code, result.envelope)

    # The pipeline does blocking HTTP calls; keep it off the event loop.
    result = await run_in_threadpool(find_arbitrage, payload)
    return _json_response(result.status_code, result.envelope)
