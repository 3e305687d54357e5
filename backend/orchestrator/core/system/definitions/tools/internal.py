"""Tools internes : référentiels de conformité et recherche documentaire."""

from orchestrator.core.services.tools.types import Tool, ToolParameter, ToolReturns, ToolType
from orchestrator.core.system.handlers.internal import SUPPORTED_FRAMEWORKS

INTERNAL_TOOLS = [
    Tool(
        name="get_framework_info",
        description="Get detailed information about compliance frameworks",
        type=ToolType.INTERNAL,
        requires_auth=False,
        parameters=[
            ToolParameter(
                "framework", "string", "Framework name (ISO27001, SOC2, FedRAMP, NIST, GDPR)",
                required=True, enum=SUPPORTED_FRAMEWORKS
            ),
        ],
        returns=ToolReturns("object", "Framework information including requirements, controls, and documentation needs"),
    ),
    Tool(
        name="search_documents",
        description="Search supplied documents for content relevant to a query",
        type=ToolType.INTERNAL,
        requires_auth=True,
        parameters=[
            ToolParameter("query", "string", "Search query text", required=True),
            ToolParameter("documents", "array", "Array of document objects ({title, content}) to search within"),
            ToolParameter("limit", "number", "Maximum number of results to return", default=5),
        ],
        returns=ToolReturns("array", "Array of matching documents with relevance scores"),
    ),
]
