# orchestrator/core/services/accounting/classification.py
"""Output classifier contract and a keyword-based default."""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List


@dataclass
class OutputClassification:
    """Content-safety label attached to a model response."""
    label: str
    score: float
    tags: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class OutputClassifier(ABC):
    """Labels model output before it leaves the core."""

    @abstractmethod
    def classify(self, text: str) -> OutputClassification:
        pass


class KeywordOutputClassifier(OutputClassifier):
    """Regex tags; any sensitive tag moves the label from `safe` to `review`."""

    PATTERNS = {
        "pii_email": re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+"),
        "credential_like": re.compile(
            r"(api[_-]?key|secret|password|bearer\s+[a-z0-9\-_\.]+|sk-[a-z0-9]{16,})",
            re.IGNORECASE
        ),
        "regulatory_reference": re.compile(
            r"\b(ISO\s?27001|SOC\s?2|GDPR|HIPAA|NIST|FedRAMP|PCI[- ]DSS)\b",
            re.IGNORECASE
        ),
    }
    SENSITIVE_TAGS = {"pii_email", "credential_like"}

    def classify(self, text: str) -> OutputClassification:
        if not text:
            return OutputClassification(label="empty", score=0.0, tags=[])

        tags = [name for name, pattern in self.PATTERNS.items() if pattern.search(text)]
        sensitive = [tag for tag in tags if tag in self.SENSITIVE_TAGS]

        if sensitive:
            return OutputClassification(
                label="review",
                score=min(1.0, 0.5 + 0.25 * len(sensitive)),
                tags=tags
            )
        return OutputClassification(label="safe", score=0.95, tags=tags)
