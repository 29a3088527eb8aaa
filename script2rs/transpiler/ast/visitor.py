"""AST visitor and traversal helpers"""

from collections.abc import Iterator
from dataclasses import fields
from typing import Generic, TypeVar

from script2rs.transpiler.ast.nodes import Call, Node

T = TypeVar("T")

# Annotation fields that point back into the tree and must not be walked twice.
_SKIPPED_FIELDS = {"receiver", "bound_args", "symbol", "var_symbol"}


def iter_child_nodes(node: Node) -> Iterator[Node]:
    """Yield the direct children of a node in source order."""
    for f in fields(node):
        if f.name in _SKIPPED_FIELDS:
            continue
        value = getattr(node, f.name)
        if isinstance(value, Node):
            yield value
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, Node):
                    yield item


def walk(node: Node) -> Iterator[Node]:
    """Yield `node` and all of its descendants, depth first, in source order."""
    yield node
    for child in iter_child_nodes(node):
        yield from walk(child)


def iter_calls(node: Node) -> Iterator[Call]:
    return (n for n in walk(node) if isinstance(n, Call))


class Visitor(Generic[T]):
    """Base visitor class for AST traversal"""

    def visit(self, node: Node) -> T:
        """Dispatch to appropriate visit method based on node type"""
        method_name = "visit_" + node.__class__.__name__
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: Node) -> T:
        """Default visitor implementation"""
        raise NotImplementedError(f"No visit_{node.__class__.__name__} method defined")
