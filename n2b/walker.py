"""
Tree Walker — finds rewrite targets in a parsed file.

Depth-first, pre-order over the whole tree.  Each binary expression is
handled at its outermost occurrence only: the rewriter consumes everything
below it, so the walker never descends into a target it has replaced.

Targets:
  • binary / compound-assignment expressions
  • ``let total = 0`` where ``total`` is one of the configured variables
  • parenthesized binary expressions, ``(a + b)`` → ``Big(a).plus(b)``
"""

import logging
from decimal import Decimal
from typing import Optional

from tree_sitter import Node

from n2b import syntax
from n2b.context_resolver import CalleeResolver, ContextResolver
from n2b.options import ConversionOptions
from n2b.rewriter import ExpressionRewriter
from n2b.source_file import SourceFile

logger = logging.getLogger(__name__)


def literal_value(text: str) -> str:
    """Render a numeric literal the way JavaScript prints its value.

    ``0x10`` → ``16``, ``1_000`` → ``1000``, ``1.50`` → ``1.5``.
    """
    cleaned = text.replace("_", "")
    lowered = cleaned.lower()
    if lowered.endswith("n"):
        # BigInt literal
        return str(int(cleaned[:-1], 0))
    if lowered.startswith(("0x", "0o", "0b")):
        return str(int(cleaned, 0))
    if len(cleaned) > 1 and cleaned.startswith("0") and cleaned.isdigit():
        # Legacy octal (017) unless it contains 8/9
        if all(c in "01234567" for c in cleaned):
            return str(int(cleaned, 8))
        return str(int(cleaned))

    value = float(cleaned)
    if 1e-6 <= abs(value) < 1e21 or value == 0:
        # Shortest round-tripping digits, as Number.prototype.toString
        digits = format(Decimal(repr(value)), "f")
        if "." in digits:
            digits = digits.rstrip("0").rstrip(".")
        return "0" if digits == "-0" else digits
    mantissa, _, exponent = repr(value).partition("e")
    return f"{mantissa}e{int(exponent):+d}"


class TreeWalker:
    """Walks one file and queues a replacement for every rewrite target."""

    def __init__(self, options: ConversionOptions, callee_resolver: Optional[CalleeResolver] = None):
        self.options = options
        self.rewriter = ExpressionRewriter(options)
        self.resolver = ContextResolver(options, callee_resolver)

    def walk(self, source_file: SourceFile) -> int:
        """Queue edits for ``source_file``.  Returns the number of replacements."""
        before = source_file.pending_edits
        self._traverse(source_file.root_node, source_file)
        count = source_file.pending_edits - before
        logger.info("%s: %d expression(s) rewritten", source_file.path, count)
        return count

    def _traverse(self, node: Node, source_file: SourceFile):
        for child in node.children:
            if source_file.is_replaced(child):
                continue

            if syntax.is_binary(child):
                self._rewrite_target(child, child, source_file)
                continue

            if child.type == syntax.VARIABLE_DECLARATOR and self._wrap_declaration(child, source_file):
                continue

            if syntax.is_parenthesized(child) and not syntax.is_statement_condition(child):
                inner = syntax.inner_expression(child)
                if syntax.is_binary(inner):
                    self._rewrite_target(child, inner, source_file)
                    continue

            self._traverse(child, source_file)

    def _rewrite_target(self, target: Node, expression: Node, source_file: SourceFile):
        chain = self.rewriter.rewrite_binary(expression, source_file)
        resolution = self.resolver.resolve(target, chain, source_file)
        source_file.replace_with_text(resolution.target, resolution.text)

    def _wrap_declaration(self, declarator: Node, source_file: SourceFile) -> bool:
        """Wrap the initializer of ``let total = 0`` when ``total`` is configured."""
        if not self.options.variables:
            return False
        children = syntax.expression_children(declarator)
        if len(children) != 3:
            return False
        name, equals, value = children
        if name.type != syntax.IDENTIFIER or equals.type != "=" or value.type != syntax.NUMBER:
            return False
        if source_file.node_text(name) not in self.options.variables:
            return False
        source_file.replace_with_text(
            value, self.rewriter.create_big(literal_value(source_file.node_text(value)))
        )
        return True
