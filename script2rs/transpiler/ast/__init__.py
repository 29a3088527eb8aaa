"""Shared AST used by every frontend."""

from script2rs.transpiler.ast.nodes import *  # noqa: F403
from script2rs.transpiler.ast.visitor import (  # noqa: F401
    Visitor,
    iter_calls,
    iter_child_nodes,
    walk,
)
