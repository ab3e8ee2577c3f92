"""
Syntax helpers over tree-sitter TypeScript nodes.

Maps the handful of node kinds the converter cares about onto tree-sitter
node types and provides the small structural queries the rewriter, context
resolver and walker share.
"""

from typing import List, Optional

from tree_sitter import Node

# Node kinds
BINARY_EXPRESSIONS = {"binary_expression", "augmented_assignment_expression"}
PARENTHESIZED_EXPRESSION = "parenthesized_expression"
CALL_EXPRESSION = "call_expression"
MEMBER_EXPRESSION = "member_expression"
VARIABLE_DECLARATOR = "variable_declarator"
IDENTIFIER = "identifier"
NUMBER = "number"
ARGUMENTS = "arguments"

# Left-hand sides a compound assignment can be restated with
ASSIGNMENT_TARGETS = {IDENTIFIER, MEMBER_EXPRESSION, "subscript_expression"}

# Statements whose `( ... )` is parsed as a parenthesized_expression condition
_CONDITION_STATEMENTS = {
    "if_statement", "while_statement", "do_statement",
    "switch_statement", "with_statement",
}


def is_binary(node: Optional[Node]) -> bool:
    return node is not None and node.type in BINARY_EXPRESSIONS


def is_parenthesized(node: Optional[Node]) -> bool:
    return node is not None and node.type == PARENTHESIZED_EXPRESSION


def expression_children(node: Node) -> List[Node]:
    """Children of an expression node with comments dropped.

    For a binary node this is the flattened ``[left, operator, right]``
    sequence.
    """
    return [child for child in node.children if child.type != "comment"]


def inner_expression(node: Node) -> Optional[Node]:
    """The expression inside one pair of parentheses."""
    for child in node.named_children:
        if child.type != "comment":
            return child
    return None


def unwrap_parentheses(node: Node) -> Optional[Node]:
    """Strip any number of nested parentheses: ``((a + b))`` → ``a + b``."""
    current = node
    while is_parenthesized(current):
        current = inner_expression(current)
    return current


def is_statement_condition(node: Node) -> bool:
    """True for the ``( ... )`` of ``if``/``while``/``switch``... statements."""
    parent = node.parent
    return parent is not None and parent.type in _CONDITION_STATEMENTS


def argument_of(node: Node) -> Optional[Node]:
    """The call expression ``node`` is an argument of, if any."""
    args = node.parent
    if args is None or args.type != ARGUMENTS:
        return None
    call = args.parent
    if call is None or call.type != CALL_EXPRESSION:
        return None
    return call


def is_first_argument(node: Node, call: Node) -> bool:
    first = inner_expression(call.child_by_field_name("arguments"))
    return first is not None and first == node
