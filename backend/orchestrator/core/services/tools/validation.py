#!/usr/bin/env python3
# orchestrator/core/services/tools/validation.py
"""
Validation des paramètres d'appel d'un tool contre sa déclaration.

Pattern: (True, None) → OK, (False, "message") → KO
"""

from typing import Any, Dict, List, Optional, Tuple
from orchestrator.core.services.tools.types import ToolParameter


def classify_value(value: Any) -> str:
    """
    Primitive type name of a runtime value.

    Arrays are recognized before objects and booleans are never numbers.
    """
    if value is None:
        return "null"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def validate_parameters(
    declared: List[ToolParameter],
    parameters: Any
) -> Tuple[bool, Optional[str]]:
    """
    Check call parameters against the declared list, in declaration order.

    Unknown extra keys are ignored. An explicit null satisfies an `object`
    parameter. A declared `enum` is a closed set: values outside it are
    rejected after the type check.

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(parameters, dict):
        return False, "Parameters must be an object"

    for param in declared:
        if param.name not in parameters:
            if param.required:
                return False, f"Missing required parameter: {param.name}"
            continue

        value = parameters[param.name]

        kind = classify_value(value)
        if kind == "null" and param.type == "object":
            continue
        if param.type != "any" and kind != param.type:
            return False, f"Parameter {param.name} must be of type {param.type}"

        if param.enum is not None and value not in param.enum:
            allowed = ", ".join(str(option) for option in param.enum)
            return False, f"Parameter {param.name} must be one of [{allowed}]"

    return True, None


def apply_defaults(declared: List[ToolParameter], parameters: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of `parameters` with declared defaults filled in for absent keys."""
    resolved = dict(parameters)
    for param in declared:
        if param.name not in resolved and param.default is not None:
            resolved[param.name] = param.default
    return resolved
