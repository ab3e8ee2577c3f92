"""
Operator Map — operator token → big.js method name.

Arithmetic, comparison and the five compound assignments share method names
with their plain counterparts (``+=`` → ``plus``).  Anything missing here is
unsupported and makes the rewriter fail hard.  ``||`` is deliberately absent:
the rewriter wraps logical-OR expressions whole instead of decomposing them.
"""

from typing import Dict, List, Optional

OPERATOR_METHODS: Dict[str, str] = {
    "-": "minus",
    "-=": "minus",
    "+": "plus",
    "+=": "plus",
    "/": "div",
    "/=": "div",
    "*": "times",
    "*=": "times",
    "%": "mod",
    "%=": "mod",
    "^": "pow",
    "===": "eq",
    "==": "eq",
    "<": "lt",
    "<=": "lte",
    ">": "gt",
    ">=": "gte",
}

COMPOUND_ASSIGNMENT_OPERATORS = frozenset({"+=", "-=", "*=", "/=", "%="})

LOGICAL_OR = "||"


def lookup_method(operator: str) -> Optional[str]:
    """Return the big.js method for an operator token, or None if unsupported."""
    return OPERATOR_METHODS.get(operator)


def supported_operators() -> List[str]:
    return list(OPERATOR_METHODS)
