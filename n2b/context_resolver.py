"""
Context Resolver — adjusts a rewritten chain to its surroundings.

Applied to every top-level rewrite target, in order:

  1. ``Math.abs(a - b)`` / ``Math.sqrt(a * b)``: the unary method is
     appended and the whole call becomes the replacement target.
     ``Math.pow(...)`` is not representable as a suffix: a diagnostic is
     recorded for each rewritten argument and the call itself is kept.
  2. ``append_to_number``: ``.toNumber()`` is appended.

Callee names are resolved through a ``CalleeResolver`` so that a smarter,
binding-aware implementation can be swapped in.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from tree_sitter import Node

from n2b import syntax
from n2b.options import ConversionOptions
from n2b.source_file import SourceFile

logger = logging.getLogger(__name__)

# Math methods that map to a unary big.js method of the same name
UNARY_MATH_METHODS = ("abs", "sqrt")


# ═══════════════════════════════════════════════════════════════════════
#  Callee resolution
# ═══════════════════════════════════════════════════════════════════════

class CalleeResolver:
    """Resolves the name of the function a call expression invokes."""

    def resolve_callee_name(self, call: Node, source_file: SourceFile) -> Optional[str]:
        raise NotImplementedError


class MemberCalleeResolver(CalleeResolver):
    """Resolves ``obj.name(...)`` to ``name``; plain calls resolve to nothing."""

    def resolve_callee_name(self, call: Node, source_file: SourceFile) -> Optional[str]:
        callee = call.child_by_field_name("function")
        if callee is None or callee.type != syntax.MEMBER_EXPRESSION:
            return None
        prop = callee.child_by_field_name("property")
        if prop is None:
            return None
        return source_file.node_text(prop)


# ═══════════════════════════════════════════════════════════════════════
#  Resolver
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class Resolution:
    """Which node to replace, and with what."""
    target: Node
    text: str


class ContextResolver:

    def __init__(self, options: ConversionOptions, callee_resolver: Optional[CalleeResolver] = None):
        self.options = options
        self.callee_resolver = callee_resolver or MemberCalleeResolver()

    def resolve(self, node: Node, chain: str, source_file: SourceFile) -> Resolution:
        """Finish ``chain`` for ``node`` and pick the node to replace."""
        target = node
        text = chain

        # Check if the expression is wrapped in a Math method
        call = syntax.argument_of(node)
        if call is not None:
            method = self.callee_resolver.resolve_callee_name(call, source_file)
            if method in UNARY_MATH_METHODS and syntax.is_first_argument(node, call):
                if source_file.overlaps_edit(call):
                    # e.g. (x + y).abs(a + b): the callee is already rewritten
                    logger.debug("%s:%d: call already rewritten, replacing the argument only",
                                 source_file.path, source_file.line_of(node))
                else:
                    text += f".{method}()"
                    target = call
            elif method == "pow":
                # TODO: support Math.pow(value, power) once exponents can be rewritten as .pow(n)
                source_file.warn(
                    call,
                    f"Found Math.pow in {source_file.path}:{source_file.line_of(node)} "
                    f"but it isn't supported! Skipping...",
                )

        if self.options.append_to_number:
            text += ".toNumber()"

        return Resolution(target, text)
