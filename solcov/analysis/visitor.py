"""
Coverage item extraction from solc JSON ASTs.

Walks one source unit depth first and records the statements, branches,
and function line markers that hits are later attributed to. Identity
indices follow traversal order, so extraction is deterministic for an
unchanged AST.
"""

import logging
from bisect import bisect_right
from typing import Any

from solcov.coverage.models import CoverageItem, ItemKind
from solcov.errors import VisitorError

logger = logging.getLogger(__name__)

STATEMENT_TYPES = frozenset(
    {
        "ExpressionStatement",
        "VariableDeclarationStatement",
        "Return",
        "EmitStatement",
        "RevertStatement",
        "Break",
        "Continue",
        "PlaceholderStatement",
        "InlineAssembly",
        "IfStatement",
        "ForStatement",
        "WhileStatement",
        "DoWhileStatement",
        "TryStatement",
    }
)

# Child keys in source order for the node types we descend into explicitly
CHILD_KEYS: dict[str, tuple[str, ...]] = {
    "SourceUnit": ("nodes",),
    "ContractDefinition": ("nodes",),
    "FunctionDefinition": ("body",),
    "ModifierDefinition": ("body",),
    "Block": ("statements",),
    "UncheckedBlock": ("statements",),
    "IfStatement": ("condition", "trueBody", "falseBody"),
    "ForStatement": ("initializationExpression", "condition", "loopExpression", "body"),
    "WhileStatement": ("condition", "body"),
    "DoWhileStatement": ("body", "condition"),
    "TryStatement": ("externalCall", "clauses"),
    "TryCatchClause": ("block",),
    "ExpressionStatement": ("expression",),
    "VariableDeclarationStatement": ("initialValue",),
    "Return": ("expression",),
    "EmitStatement": ("eventCall",),
    "RevertStatement": ("errorCall",),
    "Conditional": ("condition", "trueExpression", "falseExpression"),
    "FunctionCall": ("expression", "arguments"),
    "Assignment": ("leftHandSide", "rightHandSide"),
    "BinaryOperation": ("leftExpression", "rightExpression"),
    "UnaryOperation": ("subExpression",),
    "TupleExpression": ("components",),
    "IndexAccess": ("baseExpression", "indexExpression"),
    "MemberAccess": ("expression",),
    "Identifier": (),
    "Literal": (),
    "ElementaryTypeNameExpression": (),
    "VariableDeclaration": ("value",),
    "PragmaDirective": (),
    "ImportDirective": (),
    "EventDefinition": (),
    "ErrorDefinition": (),
    "StructDefinition": (),
    "EnumDefinition": (),
    "UsingForDirective": (),
    "UserDefinedValueTypeDefinition": (),
}


def parse_src(src: Any) -> tuple[int, int, int]:
    """
    Parse a solc ``src`` attribute.

    Args:
        src: String of the form ``start:length:sourceIndex``

    Returns:
        (start, length, source index)

    Raises:
        VisitorError: If the attribute is missing or malformed
    """
    if not isinstance(src, str):
        raise VisitorError(f"Missing src attribute: {src!r}")
    parts = src.split(":")
    if len(parts) != 3:
        raise VisitorError(f"Malformed src attribute: {src!r}")
    try:
        start, length, index = (int(part) for part in parts)
    except ValueError:
        raise VisitorError(f"Malformed src attribute: {src!r}") from None
    return start, length, index


class LineIndex:
    """Maps byte offsets of a source text to 1-based line numbers."""

    def __init__(self, source: str):
        encoded = source.encode("utf-8")
        self._line_starts = [0]
        position = encoded.find(b"\n")
        while position != -1:
            self._line_starts.append(position + 1)
            position = encoded.find(b"\n", position + 1)

    def line_of(self, offset: int) -> int:
        return bisect_right(self._line_starts, offset)


class Visitor:
    """
    Depth-first solc AST visitor producing coverage items.

    Usage:
        visitor = Visitor()
        visitor.visit_ast(ast, source_text)
        items = visitor.items
    """

    def __init__(self):
        self.items: list[CoverageItem] = []
        self._branch_id = 0
        self._lines = LineIndex("")

    def visit_ast(self, ast: dict[str, Any], source: str = "") -> list[CoverageItem]:
        """
        Extract the coverage items of one source unit.

        Args:
            ast: solc JSON AST of the source unit
            source: Original source text, used for line numbers

        Returns:
            Items in traversal order

        Raises:
            VisitorError: If the AST is not a source unit or a node is malformed
        """
        if not isinstance(ast, dict) or ast.get("nodeType") != "SourceUnit":
            raise VisitorError("AST root is not a SourceUnit")

        self.items = []
        self._branch_id = 0
        self._lines = LineIndex(source)
        self._visit(ast)
        logger.debug("Extracted %d items from %s", len(self.items), ast.get("absolutePath"))
        return self.items

    def _visit(self, node: Any) -> None:
        if isinstance(node, list):
            for child in node:
                self._visit(child)
            return
        if not isinstance(node, dict) or "nodeType" not in node:
            return

        node_type = node["nodeType"]

        if node_type in ("FunctionDefinition", "ModifierDefinition"):
            # Declarations without a body (interfaces, abstract) have no code
            if not node.get("body"):
                return
            self._add_item(ItemKind.LINE, node)
        elif node_type in STATEMENT_TYPES:
            self._add_item(ItemKind.STATEMENT, node)

        if node_type == "IfStatement":
            self._visit_branches(node, ("trueBody", "falseBody"))
        elif node_type == "Conditional":
            self._visit_branches(node, ("trueExpression", "falseExpression"))
        elif node_type == "TryStatement":
            self._visit(node.get("externalCall"))
            branch_id = self._next_branch_id()
            for path_id, clause in enumerate(node.get("clauses") or []):
                self._add_item(ItemKind.BRANCH, clause, branch_id, path_id)
                self._visit(clause)
        else:
            self._visit_children(node)

    def _visit_branches(self, node: dict[str, Any], keys: tuple[str, str]) -> None:
        self._visit(node.get("condition"))
        branch_id = self._next_branch_id()
        for path_id, key in enumerate(keys):
            body = node.get(key)
            if not body:
                continue
            self._add_item(ItemKind.BRANCH, body, branch_id, path_id)
            self._visit(body)

    def _visit_children(self, node: dict[str, Any]) -> None:
        keys = CHILD_KEYS.get(node["nodeType"])
        if keys is None:
            # Unknown node type: descend in key order so traversal stays stable
            keys = tuple(sorted(key for key, value in node.items() if isinstance(value, dict | list)))
        for key in keys:
            self._visit(node.get(key))

    def _next_branch_id(self) -> int:
        branch_id = self._branch_id
        self._branch_id += 1
        return branch_id

    def _add_item(
        self,
        kind: ItemKind,
        node: dict[str, Any],
        branch_id: int | None = None,
        path_id: int | None = None,
    ) -> None:
        start, length, _ = parse_src(node.get("src"))
        self.items.append(
            CoverageItem(
                kind=kind,
                start=start,
                length=length,
                line=self._lines.line_of(start),
                index=len(self.items),
                branch_id=branch_id,
                path_id=path_id,
            )
        )
