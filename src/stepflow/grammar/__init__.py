"""
JavaScript grammar layer.

Lark grammar (javascript.lark), per-dialect parser singleton, parse tree ->
node builder, visitor base and expression renderer.
"""

from .builder import TreeBuildError, TreeBuilder
from .nodes import Node, NodeVisitor, Program, iter_child_nodes, object_property, property_name
from .parser import DIALECTS, MODULE, SCRIPT, ScriptParser
from .render import render_expression, render_function, render_params

__all__ = [
    "DIALECTS",
    "MODULE",
    "SCRIPT",
    "Node",
    "NodeVisitor",
    "Program",
    "ScriptParser",
    "TreeBuildError",
    "TreeBuilder",
    "iter_child_nodes",
    "object_property",
    "property_name",
    "render_expression",
    "render_function",
    "render_params",
]
