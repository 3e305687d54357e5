"""Handlers pour les tools externes (web, email, santé des APIs)."""

import asyncio
import ipaddress
import re
import socket
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urljoin, urlparse
import httpx
from config.logger import logger
from orchestrator.core.services.tools.types import InvocationContext
from orchestrator.core.system.handler import tool_handler
from orchestrator.core.utils.http_client import http_client
from orchestrator.core.utils.id_generator import generate_id

FETCH_TIMEOUT_SECONDS = 10.0
HEALTH_TIMEOUT_SECONDS = 5.0
MAX_FETCHED_CHARS = 5000
MAX_REDIRECTS = 5
BLOCKED_HOST_ERROR = "Cannot fetch from private or local addresses"

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
TITLE_PATTERN = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)
SCRIPT_PATTERN = re.compile(r"<(script|style)[^>]*>.*?</\1>", re.IGNORECASE | re.DOTALL)
TAG_PATTERN = re.compile(r"<[^>]*>")
WHITESPACE_PATTERN = re.compile(r"\s+")


def is_blocked_host(hostname: str) -> bool:
    """Local, loopback, private and link-local destinations are refused."""
    if not hostname:
        return True
    host = hostname.strip("[]").lower()
    if host == "localhost" or host.endswith(".localhost") or host.endswith(".local"):
        return True
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    return (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_unspecified
        or address.is_reserved
    )


async def resolve_addresses(hostname: str) -> List[str]:
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(hostname, None, type=socket.SOCK_STREAM)
    # Scoped IPv6 literals carry a %zone suffix
    return [info[4][0].split("%")[0] for info in infos]


async def check_destination(url: str) -> Optional[str]:
    """Error message for a URL that must not be fetched, None when allowed."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return "URL must start with http:// or https://"
    if is_blocked_host(parsed.hostname):
        return BLOCKED_HOST_ERROR

    try:
        addresses = await resolve_addresses(parsed.hostname)
    except OSError as e:
        logger.warning(f"fetch_url could not resolve {parsed.hostname}: {e}")
        return f"Could not resolve host {parsed.hostname}"
    if any(is_blocked_host(address) for address in addresses):
        logger.warning(f"fetch_url refused {parsed.hostname}: resolves to a private address")
        return BLOCKED_HOST_ERROR
    return None


def html_to_text(html: str) -> str:
    text = SCRIPT_PATTERN.sub(" ", html)
    text = TAG_PATTERN.sub(" ", text)
    return WHITESPACE_PATTERN.sub(" ", text).strip()


@tool_handler("web_search")
async def handle_web_search(parameters: Dict[str, Any], context: InvocationContext) -> Dict[str, Any]:
    """Recherche simulée (pas de moteur branché)."""
    query = parameters["query"]
    limit = max(1, int(parameters.get("limit") or 5))
    domain = parameters.get("domain")

    results = [
        {
            "title": f"Compliance best practices for {query}",
            "url": f"https://compliance.example.com/search?q={quote(query)}",
            "snippet": "Latest guidance and best practices for compliance frameworks...",
            "source": "Compliance Portal"
        },
        {
            "title": f"{query} - Implementation Guide",
            "url": f"https://security.example.com/{quote(query.lower())}",
            "snippet": "Step-by-step implementation guide for security compliance...",
            "source": "Security Documentation"
        }
    ]
    if domain:
        results = [result for result in results if domain.lower() in result["url"]]

    limited = results[:limit]
    return {
        "success": True,
        "data": limited,
        "metadata": {"query": query, "total_results": len(results), "returned": len(limited)}
    }


@tool_handler("fetch_url")
async def handle_fetch_url(parameters: Dict[str, Any], context: InvocationContext) -> Dict[str, Any]:
    """Télécharge une page et en extrait le texte."""
    url = parameters["url"]

    try:
        async with http_client() as client:
            for _ in range(MAX_REDIRECTS + 1):
                error = await check_destination(url)
                if error:
                    return {"success": False, "data": None, "error": error}

                # Each hop is re-checked before it is requested
                response = await client.get(url, timeout=FETCH_TIMEOUT_SECONDS, follow_redirects=False)
                if not response.is_redirect:
                    break
                url = urljoin(url, response.headers["location"])
            else:
                return {"success": False, "data": None, "error": f"Too many redirects (max {MAX_REDIRECTS})"}
    except httpx.TimeoutException:
        return {"success": False, "data": None, "error": f"Request timed out after {FETCH_TIMEOUT_SECONDS:g}s"}
    except httpx.HTTPError as e:
        logger.error(f"fetch_url failed for {url}: {e}")
        return {"success": False, "data": None, "error": str(e)}

    if response.status_code >= 400:
        return {
            "success": False,
            "data": None,
            "error": f"HTTP {response.status_code}: {response.reason_phrase}"
        }

    body = response.text
    title_match = TITLE_PATTERN.search(body)
    text = html_to_text(body)

    return {
        "success": True,
        "data": {
            "url": url,
            "title": title_match.group(1).strip() if title_match else "No title",
            "content": text[:MAX_FETCHED_CHARS],
            "content_length": len(text)
        },
        "metadata": {
            "status_code": response.status_code,
            "content_type": response.headers.get("content-type")
        }
    }


@tool_handler("get_regulatory_updates")
async def handle_get_regulatory_updates(parameters: Dict[str, Any], context: InvocationContext) -> Dict[str, Any]:
    """Flux de mises à jour réglementaires (simulé)."""
    framework = parameters["framework"]
    date_range = parameters.get("date_range") or "last_month"
    now = datetime.now(timezone.utc)
    slug = quote(framework.lower())

    updates = [
        {
            "id": "1",
            "framework": framework,
            "title": f"{framework} Amendment 2025.1 Released",
            "date": (now - timedelta(days=7)).isoformat(),
            "summary": "New requirements for cloud security controls and third-party risk management.",
            "source": "Regulatory Authority",
            "severity": "high",
            "url": f"https://regulatory.example.com/{slug}/2025-1"
        },
        {
            "id": "2",
            "framework": framework,
            "title": f"{framework} Guidance Update: AI and Machine Learning",
            "date": (now - timedelta(days=14)).isoformat(),
            "summary": "Updated guidance on implementing AI systems while maintaining compliance.",
            "source": "Standards Organization",
            "severity": "medium",
            "url": f"https://standards.example.com/{slug}/ai-guidance"
        }
    ]
    if date_range == "last_week":
        cutoff = now - timedelta(days=7, minutes=1)
        updates = [update for update in updates if datetime.fromisoformat(update["date"]) >= cutoff]

    return {
        "success": True,
        "data": updates,
        "metadata": {"framework": framework, "date_range": date_range, "count": len(updates)}
    }


@tool_handler("send_email")
async def handle_send_email(parameters: Dict[str, Any], context: InvocationContext) -> Dict[str, Any]:
    """Valide l'adresse puis simule l'envoi."""
    recipient = parameters["to"]
    if not EMAIL_PATTERN.match(recipient):
        return {"success": False, "data": None, "error": "Invalid email address format"}

    logger.info(f"📧 Email queued to {recipient} (subject='{parameters['subject']}', user={context.user_id})")

    return {
        "success": True,
        "data": {
            "message_id": generate_id("message"),
            "recipient": recipient,
            "status": "sent",
            "template": parameters.get("template"),
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    }


async def _check_service(name: str, url: str) -> Dict[str, Any]:
    started = datetime.now(timezone.utc)
    try:
        async with http_client() as client:
            response = await client.get(url, timeout=HEALTH_TIMEOUT_SECONDS)
    except httpx.HTTPError as e:
        return {"name": name, "status": "unhealthy", "error": str(e) or e.__class__.__name__}

    elapsed_ms = int((datetime.now(timezone.utc) - started).total_seconds() * 1000)
    return {
        "name": name,
        "status": "healthy" if response.status_code < 400 else "degraded",
        "status_code": response.status_code,
        "response_time_ms": elapsed_ms
    }


@tool_handler("check_api_health")
async def handle_check_api_health(parameters: Dict[str, Any], context: InvocationContext) -> Dict[str, Any]:
    service = parameters["service"]
    results: Dict[str, Any] = {}

    if service in ("all", "openai"):
        results["openai"] = await _check_service("OpenAI", "https://api.openai.com/v1/models")
    if service in ("all", "anthropic"):
        results["anthropic"] = {"name": "Anthropic", "status": "healthy"}
    if service in ("all", "gemini"):
        results["gemini"] = {"name": "Gemini", "status": "healthy"}

    return {
        "success": True,
        "data": results,
        "metadata": {"checked_at": datetime.now(timezone.utc).isoformat()}
    }
