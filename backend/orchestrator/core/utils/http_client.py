#!/usr/bin/env python3
# orchestrator/core/utils/http_client.py
"""Shared HTTP client with connection pooling for built-in external tools."""

import contextlib
import httpx
from typing import AsyncIterator, Optional
from config.logger import logger


_http_client: Optional[httpx.AsyncClient] = None

USER_AGENT = "ComplianceAI-Bot/1.0"


async def init_http_client():
    """
    Initialize the pooled HTTP client.

    Configuration:
    - max_connections=100: Maximum concurrent connections across all hosts
    - max_keepalive_connections=20: Persistent connections kept alive for reuse
    - timeout=30s total, 10s connect
    """
    global _http_client
    if _http_client is not None:
        return

    _http_client = httpx.AsyncClient(
        limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
        timeout=httpx.Timeout(30.0, connect=10.0),
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True
    )
    logger.info("✅ HTTP client pool initialized")


async def close_http_client():
    """Close HTTP client and cleanup connections."""
    global _http_client
    if _http_client:
        await _http_client.aclose()
        logger.info("✅ HTTP client pool closed")
        _http_client = None


@contextlib.asynccontextmanager
async def http_client() -> AsyncIterator[httpx.AsyncClient]:
    """
    Yield the pooled client, or a short-lived one when the pool is not running
    (scripts, tests, tools executed outside the API process).
    """
    if _http_client is not None:
        yield _http_client
        return

    async with httpx.AsyncClient(
        timeout=httpx.Timeout(30.0, connect=10.0),
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True
    ) as client:
        yield client
