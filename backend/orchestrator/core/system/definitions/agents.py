"""Agents prédéfinis - Source de vérité unique."""

from typing import List
from config.config import Settings
from orchestrator.core.services.agents.types import AgentCapability, AgentDefinition, ProviderFamily

COMPLIANCE_ASSISTANT_PROMPT = """You are an expert compliance assistant specializing in cybersecurity frameworks like ISO 27001, SOC 2, NIST, and GDPR.

Your capabilities:
- Analyze compliance documentation and provide quality scores
- Identify gaps in compliance implementations
- Search for relevant regulatory updates and best practices
- Guide users through compliance requirements
- Recommend improvements to policies and procedures

Always:
- Provide specific, actionable recommendations
- Reference relevant compliance standards
- Use tools to gather current information
- Be thorough and professional in your analysis
- Ask clarifying questions when needed"""

DOCUMENT_GENERATOR_PROMPT = """You are a specialized document generation agent focused on creating high-quality compliance documentation.

Your capabilities:
- Generate comprehensive policies and procedures
- Ensure documentation meets compliance standards
- Tailor content to specific industries and company profiles
- Incorporate regulatory requirements and best practices

Always:
- Generate professional, clear, and actionable content
- Include all required sections for compliance frameworks
- Use company-specific information appropriately
- Ensure documents are implementation-ready"""

RISK_ASSESSMENT_PROMPT = """You are a cybersecurity risk assessment specialist with expertise in:
- Organizational risk analysis
- Threat landscape evaluation
- Control effectiveness assessment
- Risk mitigation strategies

Your approach:
- Identify critical vulnerabilities and threats
- Prioritize risks based on likelihood and impact
- Recommend practical mitigation strategies
- Consider industry-specific threats

Always provide quantifiable risk scores and explain risk factors clearly."""

DATA_EXTRACTOR_PROMPT = """You are a data extraction specialist focused on:
- Extracting structured information from documents
- Parsing compliance documentation
- Gathering information from external sources
- Validating extracted information

Always:
- Be precise and accurate in extraction
- Provide source references
- Structure data logically
- Indicate any uncertainties"""

COMPLIANCE_CHAT_PROMPT = """You are a friendly and knowledgeable compliance chatbot helping users with:
- Answering compliance questions
- Providing implementation guidance
- Explaining regulatory requirements
- Staying updated on regulatory changes

Your style is conversational, clear and concise. Search documentation first before answering,
reference standards and requirements, and stay within your knowledge domain."""


def build_predefined_agents(settings: Settings) -> List[AgentDefinition]:
    """
    Agents shipped with the service.

    Some tool names refer to capabilities served elsewhere (company profiles,
    document storage); they are dropped when tools are resolved for a turn.
    """
    return [
        AgentDefinition(
            id="compliance-assistant",
            name="Compliance Assistant",
            description="Expert assistant for compliance documentation, gap analysis, and framework implementation",
            provider=ProviderFamily.OPENAI,
            model=settings.openai_model,
            system_prompt=COMPLIANCE_ASSISTANT_PROMPT,
            tools=(
                "get_company_profile",
                "get_documents",
                "analyze_document_quality",
                "perform_gap_analysis",
                "search_documents",
                "get_framework_info",
                "web_search",
                "get_regulatory_updates",
            ),
            temperature=0.7,
            max_tokens=2000,
            capabilities=(
                AgentCapability.COMPLIANCE_ANALYSIS,
                AgentCapability.GAP_ANALYSIS,
                AgentCapability.QUALITY_SCORING,
                AgentCapability.CHAT_INTERACTION,
            ),
        ),
        AgentDefinition(
            id="document-generator",
            name="Document Generator",
            description="Specialized agent for generating compliance documents, policies, and procedures",
            provider=ProviderFamily.ANTHROPIC,
            model=settings.anthropic_model,
            system_prompt=DOCUMENT_GENERATOR_PROMPT,
            tools=(
                "get_company_profile",
                "generate_document",
                "analyze_document_quality",
                "get_documents",
                "get_framework_info",
                "web_search",
            ),
            temperature=0.6,
            max_tokens=4000,
            capabilities=(
                AgentCapability.DOCUMENT_GENERATION,
                AgentCapability.COMPLIANCE_ANALYSIS,
                AgentCapability.QUALITY_SCORING,
            ),
        ),
        AgentDefinition(
            id="risk-assessment",
            name="Risk Assessment Specialist",
            description="Expert in organizational risk assessment and threat analysis",
            provider=ProviderFamily.OPENAI,
            model=settings.openai_model,
            system_prompt=RISK_ASSESSMENT_PROMPT,
            tools=(
                "get_company_profile",
                "perform_risk_assessment",
                "get_documents",
                "web_search",
                "get_regulatory_updates",
                "search_documents",
            ),
            temperature=0.7,
            max_tokens=2500,
            capabilities=(
                AgentCapability.RISK_ASSESSMENT,
                AgentCapability.COMPLIANCE_ANALYSIS,
                AgentCapability.CHAT_INTERACTION,
            ),
        ),
        AgentDefinition(
            id="data-extractor",
            name="Data Extraction Agent",
            description="Specialized in extracting structured data from documents and external sources",
            provider=ProviderFamily.ANTHROPIC,
            model=settings.anthropic_model,
            system_prompt=DATA_EXTRACTOR_PROMPT,
            tools=("get_documents", "search_documents", "fetch_url", "web_search"),
            temperature=0.5,
            max_tokens=3000,
            capabilities=(
                AgentCapability.DATA_EXTRACTION,
                AgentCapability.EXTERNAL_API_CALLS,
                AgentCapability.CHAT_INTERACTION,
            ),
        ),
        AgentDefinition(
            id="compliance-chat",
            name="Compliance Chatbot",
            description="Interactive chatbot for answering compliance questions and providing guidance",
            provider=ProviderFamily.OPENAI,
            model=settings.openai_model,
            system_prompt=COMPLIANCE_CHAT_PROMPT,
            tools=(
                "get_documents",
                "search_documents",
                "get_company_profile",
                "web_search",
                "get_regulatory_updates",
                "check_api_health",
            ),
            temperature=0.8,
            max_tokens=1500,
            capabilities=(
                AgentCapability.CHAT_INTERACTION,
                AgentCapability.COMPLIANCE_ANALYSIS,
                AgentCapability.EXTERNAL_API_CALLS,
            ),
        ),
    ]


def get_recommended_agent(task: str) -> str:
    """Agent id best suited to a free-text task description."""
    task_lower = task.lower()

    if "generate" in task_lower or "create document" in task_lower:
        return "document-generator"
    if "risk" in task_lower or "threat" in task_lower:
        return "risk-assessment"
    if "gap" in task_lower or "analysis" in task_lower:
        return "compliance-assistant"
    if "extract" in task_lower or "parse" in task_lower:
        return "data-extractor"

    # Requêtes générales
    return "compliance-chat"
