"""FastAPI relay between the page-chat client and upstream LLM providers.

Provider routes are a passthrough: the request body is forwarded unchanged
with the credential the relay holds, and the upstream JSON comes back
unchanged. ``/api/fetch-page`` fetches a public page server-side and returns
its sanitized, redacted digest.
"""

from __future__ import annotations

import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from page_chat.content.extractor import build_snapshot
from page_chat.exceptions import BlockedURLError, WebFetchError
from page_chat.relay.config import RelaySettings
from page_chat.web.fetcher import WebFetcher, is_html

logger = logging.getLogger(__name__)


def create_app(
    settings: RelaySettings | None = None,
    fetcher: WebFetcher | None = None,
    upstream_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the relay application.

    Args:
        settings: Credentials and limits; read from the environment when omitted.
        fetcher: Page fetcher for ``/api/fetch-page``.
        upstream_transport: Optional httpx transport for provider calls (tests).
    """
    settings = settings or RelaySettings.from_env()
    fetcher = fetcher or WebFetcher(timeout=settings.fetch_timeout)

    application = FastAPI(title="page-chat relay", docs_url=None, redoc_url=None)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.state.settings = settings

    @application.post("/api/fetch-page")
    async def fetch_page(request: Request):
        payload = await _json_body(request)
        url = payload.get("url") if isinstance(payload, dict) else None
        if not url or not isinstance(url, str):
            return _fail(400, "URL is required")

        try:
            page = await fetcher.fetch_html(url)
        except BlockedURLError as e:
            logger.warning("Rejected fetch-page URL: %s", e)
            return _fail(400, str(e))
        except WebFetchError as e:
            logger.error("Error fetching page: %s", e)
            return _fail(500, str(e), url=url)

        if not is_html(page["content_type"]):
            return _fail(
                400,
                "URL does not return HTML content",
                contentType=page["content_type"],
            )

        snapshot = build_snapshot(page["content"], redact_all=True)
        return {
            "success": True,
            "html": snapshot.structured,
            "title": snapshot.title,
            "originalUrl": url,
        }

    @application.get("/api/{provider}/ping")
    async def ping(provider: str):
        if provider not in settings.upstreams:
            return Response(status_code=404)
        if settings.api_keys.get(provider):
            return Response(status_code=200)
        return Response(status_code=400)

    @application.post("/api/{provider}")
    async def relay_chat(provider: str, request: Request):
        upstream = settings.upstreams.get(provider)
        if upstream is None:
            return JSONResponse({"error": f"Unknown provider: {provider}"}, status_code=404)
        api_key = settings.api_keys.get(provider)
        if not api_key:
            return JSONResponse(
                {"error": f"{upstream.label} API key not set in environment"},
                status_code=400,
            )

        body = await _json_body(request)
        if not isinstance(body, dict):
            return JSONResponse({"error": "Request body must be a JSON object"}, status_code=400)

        logger.info("Relaying question to %s", upstream.label)
        try:
            async with httpx.AsyncClient(
                timeout=upstream.timeout,
                transport=upstream_transport,
            ) as client:
                response = await client.post(
                    upstream.url,
                    json=body,
                    headers=upstream.headers(api_key),
                )
        except httpx.TimeoutException:
            logger.error("%s request timed out", upstream.label)
            return JSONResponse(
                {"error": f"Request to {upstream.label} API timed out"},
                status_code=504,
            )
        except httpx.HTTPError as e:
            logger.error("%s request failed: %s", upstream.label, e)
            return JSONResponse({"error": f"{upstream.label} API request failed"}, status_code=502)

        try:
            data = response.json()
        except ValueError:
            data = response.text
        if response.is_error:
            logger.warning("%s returned HTTP %s", upstream.label, response.status_code)
            if isinstance(data, dict) and "error" in data:
                data = data["error"]
            return JSONResponse({"error": data}, status_code=response.status_code)
        return JSONResponse(data)

    return application


async def _json_body(request: Request):
    try:
        return await request.json()
    except ValueError:
        return None


def _fail(status_code: int, error: str, **extra) -> JSONResponse:
    return JSONResponse({"success": False, "error": error, **extra}, status_code=status_code)
