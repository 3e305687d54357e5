"""Tools externes : web, réglementation, email, santé des APIs."""

from orchestrator.core.services.tools.types import RateLimit, Tool, ToolParameter, ToolReturns, ToolType

HOUR_MS = 60 * 60 * 1000

EXTERNAL_TOOLS = [
    Tool(
        name="web_search",
        description="Search the web for compliance information, best practices, and regulatory updates",
        type=ToolType.EXTERNAL,
        requires_auth=True,
        rate_limit=RateLimit(max_calls=30, window_ms=HOUR_MS),
        parameters=[
            ToolParameter("query", "string", "Search query string", required=True),
            ToolParameter("limit", "number", "Maximum number of results", default=5),
            ToolParameter("domain", "string", "Restrict search to specific domain (optional)"),
        ],
        returns=ToolReturns("array", "Array of search results with titles, URLs, and snippets"),
    ),
    Tool(
        name="fetch_url",
        description="Fetch and extract text content from a specific public URL",
        type=ToolType.EXTERNAL,
        requires_auth=True,
        rate_limit=RateLimit(max_calls=50, window_ms=HOUR_MS),
        parameters=[
            ToolParameter("url", "string", "The URL to fetch (http or https)", required=True),
        ],
        returns=ToolReturns("object", "Fetched content with URL, title, and extracted text"),
    ),
    Tool(
        name="get_regulatory_updates",
        description="Fetch latest regulatory updates and compliance news for specific frameworks",
        type=ToolType.EXTERNAL,
        requires_auth=True,
        rate_limit=RateLimit(max_calls=20, window_ms=HOUR_MS),
        parameters=[
            ToolParameter("framework", "string", "Compliance framework (ISO27001, SOC2, GDPR, etc.)", required=True),
            ToolParameter(
                "date_range", "string", "Date range for updates",
                enum=["last_week", "last_month", "last_year"], default="last_month"
            ),
        ],
        returns=ToolReturns("array", "Array of regulatory updates with titles, dates, and summaries"),
    ),
    Tool(
        name="send_email",
        description="Send email notifications to users or stakeholders",
        type=ToolType.EXTERNAL,
        requires_auth=True,
        rate_limit=RateLimit(max_calls=100, window_ms=HOUR_MS),
        parameters=[
            ToolParameter("to", "string", "Recipient email address", required=True),
            ToolParameter("subject", "string", "Email subject", required=True),
            ToolParameter("body", "string", "Email body content", required=True),
            ToolParameter("template", "string", "Email template name (optional)"),
        ],
        returns=ToolReturns("object", "Email send result with message ID"),
    ),
    Tool(
        name="check_api_health",
        description="Check the health status of external compliance APIs and services",
        type=ToolType.EXTERNAL,
        requires_auth=False,
        parameters=[
            ToolParameter(
                "service", "string", "Service name to check",
                required=True, enum=["openai", "anthropic", "gemini", "all"]
            ),
        ],
        returns=ToolReturns("object", "Health status of requested services"),
    ),
]
