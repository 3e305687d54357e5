"""Handlers pour les tools internes (référentiels, recherche documentaire)."""

import re
from typing import Any, Dict, List
from orchestrator.core.services.tools.types import InvocationContext
from orchestrator.core.system.handler import tool_handler

FRAMEWORKS: Dict[str, Dict[str, Any]] = {
    "ISO27001": {
        "name": "ISO/IEC 27001",
        "full_name": "Information Security Management System",
        "description": "International standard for information security management",
        "controls": 93,
        "control_families": ["Organizational", "People", "Physical", "Technological"],
        "required_documents": 20,
        "certification_body": "Accredited certification bodies",
        "audit_cycle": "Annual surveillance, 3-year recertification",
        "key_requirements": [
            "Risk assessment and treatment",
            "Statement of Applicability (SoA)",
            "Information security policies",
            "Asset management",
            "Access control",
            "Cryptography",
            "Physical security",
            "Operations security",
            "Communications security",
            "System acquisition and development",
            "Supplier relationships",
            "Incident management",
            "Business continuity",
            "Compliance",
        ],
    },
    "SOC2": {
        "name": "SOC 2",
        "full_name": "Service Organization Control 2",
        "description": "Audit for service providers storing customer data",
        "controls": "Variable based on TSC",
        "control_families": ["Trust Service Criteria (TSC)"],
        "required_documents": 15,
        "certification_body": "Licensed CPAs",
        "audit_cycle": "Type I (point in time) or Type II (3-12 months)",
        "key_requirements": [
            "Security (mandatory)",
            "Availability (optional)",
            "Processing Integrity (optional)",
            "Confidentiality (optional)",
            "Privacy (optional)",
            "System description",
            "Control environment",
            "Risk assessment",
            "Monitoring",
            "Control activities",
            "Logical and physical access",
            "System operations",
            "Change management",
            "Risk mitigation",
        ],
    },
    "FedRAMP": {
        "name": "FedRAMP",
        "full_name": "Federal Risk and Authorization Management Program",
        "description": "Security assessment for cloud services used by US federal agencies",
        "controls": "325+ (based on NIST 800-53)",
        "control_families": ["NIST 800-53 families"],
        "required_documents": 30,
        "certification_body": "3PAO (Third Party Assessment Organization)",
        "audit_cycle": "Annual assessment, continuous monitoring",
        "key_requirements": [
            "System Security Plan (SSP)",
            "Security Assessment Plan (SAP)",
            "Security Assessment Report (SAR)",
            "Plan of Action and Milestones (POA&M)",
            "Continuous monitoring",
            "Incident response",
            "Configuration management",
            "Contingency planning",
            "Identification and authentication",
            "System and communications protection",
            "Audit and accountability",
        ],
    },
    "NIST": {
        "name": "NIST CSF",
        "full_name": "NIST Cybersecurity Framework",
        "description": "Framework for improving critical infrastructure cybersecurity",
        "controls": "108 subcategories",
        "control_families": ["Identify", "Protect", "Detect", "Respond", "Recover"],
        "required_documents": 10,
        "certification_body": "No formal certification",
        "audit_cycle": "Continuous improvement",
        "key_requirements": [
            "Asset Management",
            "Business Environment",
            "Governance",
            "Risk Assessment",
            "Risk Management Strategy",
            "Access Control",
            "Data Security",
            "Protective Technology",
            "Anomalies and Events Detection",
            "Security Continuous Monitoring",
            "Response Planning",
            "Communications",
            "Analysis",
            "Mitigation",
            "Improvements",
            "Recovery Planning",
        ],
    },
    "GDPR": {
        "name": "GDPR",
        "full_name": "General Data Protection Regulation",
        "description": "EU regulation on data protection and privacy",
        "controls": "99 articles",
        "control_families": ["Principles", "Rights", "Controller obligations", "Transfer", "DPA"],
        "required_documents": 12,
        "certification_body": "Data Protection Authorities",
        "audit_cycle": "Continuous compliance required",
        "key_requirements": [
            "Lawful basis for processing",
            "Data subject rights",
            "Consent management",
            "Data protection by design",
            "Data protection impact assessments",
            "Data breach notification",
            "Privacy notices",
            "Data processing agreements",
            "Record of processing activities",
            "Data transfer mechanisms",
            "DPO appointment (if applicable)",
            "Security measures",
        ],
    },
}

SUPPORTED_FRAMEWORKS = ["ISO27001", "SOC2", "FedRAMP", "NIST", "GDPR", "HIPAA", "PCI-DSS"]

TOKEN_PATTERN = re.compile(r"[a-z0-9]+")


@tool_handler("get_framework_info")
async def handle_get_framework_info(parameters: Dict[str, Any], context: InvocationContext) -> Dict[str, Any]:
    framework = parameters["framework"]
    info = FRAMEWORKS.get(framework)
    if not info:
        return {"success": False, "data": None, "error": f"Framework '{framework}' not found"}
    return {"success": True, "data": {"framework": framework, **info}}


def _tokens(text: str) -> List[str]:
    return TOKEN_PATTERN.findall(text.lower())


def _document_text(document: Any) -> str:
    if isinstance(document, str):
        return document
    if isinstance(document, dict):
        return " ".join(str(document.get(key) or "") for key in ("title", "content", "description"))
    return str(document)


def score_document(query_terms: List[str], document: Any) -> float:
    """Share of query terms found in the document, weighted by frequency."""
    if not query_terms:
        return 0.0
    words = _tokens(_document_text(document))
    if not words:
        return 0.0
    matched = [term for term in query_terms if term in words]
    if not matched:
        return 0.0
    coverage = len(set(matched)) / len(set(query_terms))
    density = sum(words.count(term) for term in set(matched)) / len(words)
    return round(coverage * 0.8 + min(density * 10, 1.0) * 0.2, 4)


@tool_handler("search_documents")
async def handle_search_documents(parameters: Dict[str, Any], context: InvocationContext) -> Dict[str, Any]:
    """Recherche par mots-clés dans les documents fournis."""
    query_terms = _tokens(parameters["query"])
    documents = parameters.get("documents") or []
    limit = max(1, int(parameters.get("limit") or 5))

    scored = []
    for index, document in enumerate(documents):
        relevance = score_document(query_terms, document)
        if relevance > 0:
            scored.append({
                "index": index,
                "title": document.get("title") if isinstance(document, dict) else None,
                "relevance": relevance,
                "excerpt": _document_text(document)[:300],
            })

    scored.sort(key=lambda item: item["relevance"], reverse=True)
    return {
        "success": True,
        "data": scored[:limit],
        "metadata": {"searched": len(documents), "matched": len(scored)}
    }
