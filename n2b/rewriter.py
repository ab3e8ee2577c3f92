"""
Expression Rewriter — binary expression → big.js method chain.

The parser already encodes precedence in the nesting of binary nodes, so a
node is rewritten by walking its ``[left, operator, right]`` children left to
right:

  • the head operand is wrapped in ``Big(...)`` (nested binaries recurse,
    parentheses are consumed by the wrapper)
  • every operator becomes ``.method(...)`` around the rendered right operand
  • ``x += y`` is restated as ``x = x.plus(y)``
  • a logical-OR is not decomposed: the whole expression becomes ``Big(a || b)``

Example::

    (3 + 10) * 2   →   Big(Big(3).plus(10)).times(2)
    3 + 10 * 2     →   Big(3).plus(Big(10).times(2))
"""

import logging

from tree_sitter import Node

from n2b import syntax
from n2b.errors import UnsupportedOperatorError
from n2b.mappings import COMPOUND_ASSIGNMENT_OPERATORS, LOGICAL_OR, lookup_method
from n2b.options import ConversionOptions
from n2b.source_file import SourceFile

logger = logging.getLogger(__name__)


class ExpressionRewriter:
    """Turns one binary-expression subtree into chain-call text."""

    def __init__(self, options: ConversionOptions):
        self.options = options

    def create_big(self, content) -> str:
        prefix = "new " if self.options.prepend_new else ""
        return f"{prefix}Big({content})"

    def rewrite_binary(self, node: Node, source_file: SourceFile) -> str:
        children = syntax.expression_children(node)
        if len(children) < 3:
            # Nothing to decompose
            return self.create_big(source_file.node_text(node))

        operators = children[1::2]
        if any(op.type == LOGICAL_OR for op in operators):
            return self.create_big(source_file.node_text(node))

        result = self._render_head(children[0], children[1], source_file)

        for i in range(1, len(children) - 1, 2):
            operator, operand = children[i], children[i + 1]
            method = lookup_method(operator.type)
            if method is None:
                raise UnsupportedOperatorError(
                    operator.type,
                    source_file.node_text(node),
                    path=source_file.path,
                    line=source_file.line_of(operator),
                )
            result += f".{method}({self._render_operand(operand, source_file)})"

        logger.debug("Rewrote %r -> %r", source_file.node_text(node), result)
        return result

    # ────────────────────────────────────────────────────────────────
    #  Operand rendering
    # ────────────────────────────────────────────────────────────────

    def _render_head(self, head: Node, operator: Node, source_file: SourceFile) -> str:
        """Render position 0 of a chain."""
        if syntax.is_binary(head):
            return self.rewrite_binary(head, source_file)

        if head.type in syntax.ASSIGNMENT_TARGETS and operator.type in COMPOUND_ASSIGNMENT_OPERATORS:
            # 'total +=' -> 'total = total' ('.plus(...)' is appended by the caller)
            target = source_file.node_text(head)
            return f"{target} = {target}"

        if syntax.is_parenthesized(head):
            inner = syntax.unwrap_parentheses(head)
            if syntax.is_binary(inner):
                return self.create_big(self.rewrite_binary(inner, source_file))

        return self.create_big(source_file.node_text(head))

    def _render_operand(self, operand: Node, source_file: SourceFile) -> str:
        """Render a right-hand operand; atoms stay verbatim, unwrapped."""
        if syntax.is_binary(operand):
            return self.rewrite_binary(operand, source_file)

        if syntax.is_parenthesized(operand):
            inner = syntax.unwrap_parentheses(operand)
            if syntax.is_binary(inner):
                return self.rewrite_binary(inner, source_file)

        return source_file.node_text(operand)
