"""
Tests for coverage item extraction from solc ASTs.
"""

import copy

import pytest

from solcov.analysis.visitor import LineIndex, Visitor, parse_src
from solcov.coverage.models import ItemKind
from solcov.errors import VisitorError
from tests.counter_project import FUNCTION, IF_FALSE, IF_STMT, IF_TRUE, SOURCE


def _source_unit(*nodes, src="0:100:0"):
    return {"nodeType": "SourceUnit", "src": src, "nodes": list(nodes)}


class TestParseSrc:
    """Tests for solc src attribute parsing."""

    def test_parses_three_fields(self):
        assert parse_src("12:34:5") == (12, 34, 5)

    def test_negative_source_index(self):
        assert parse_src("0:0:-1") == (0, 0, -1)

    @pytest.mark.parametrize("src", [None, "12:34", "a:b:c", "1:2:3:4"])
    def test_malformed_raises(self, src):
        with pytest.raises(VisitorError):
            parse_src(src)


class TestLineIndex:
    """Tests for byte offset to line mapping."""

    def test_first_line(self):
        lines = LineIndex("a\nb\nc")
        assert lines.line_of(0) == 1

    def test_offsets_after_newlines(self):
        lines = LineIndex("a\nb\nc")
        assert lines.line_of(2) == 2
        assert lines.line_of(4) == 3

    def test_counts_utf8_bytes(self):
        # "é" is two bytes, so the second line starts at byte 3
        lines = LineIndex("é\nx")
        assert lines.line_of(3) == 2
        assert lines.line_of(2) == 1


class TestVisitor:
    """Tests for the AST visitor on the Counter fixture."""

    def test_extracts_items_in_traversal_order(self, counter_ast):
        """Function marker, if statement, then each path with its statements."""
        items = Visitor().visit_ast(counter_ast, SOURCE)

        assert [item.kind for item in items] == [
            ItemKind.LINE,
            ItemKind.STATEMENT,
            ItemKind.BRANCH,
            ItemKind.STATEMENT,
            ItemKind.BRANCH,
            ItemKind.STATEMENT,
        ]
        assert [item.index for item in items] == list(range(6))

    def test_item_ranges_match_source(self, counter_ast):
        items = Visitor().visit_ast(counter_ast, SOURCE)

        assert SOURCE[items[0].start : items[0].end] == FUNCTION
        assert SOURCE[items[1].start : items[1].end] == IF_STMT
        assert SOURCE[items[2].start : items[2].end] == IF_TRUE
        assert SOURCE[items[3].start : items[3].end] == "count += x;"
        assert SOURCE[items[4].start : items[4].end] == IF_FALSE
        assert SOURCE[items[5].start : items[5].end] == "count = 0;"

    def test_line_numbers(self, counter_ast):
        items = Visitor().visit_ast(counter_ast, SOURCE)
        assert [item.line for item in items] == [6, 7, 7, 8, 9, 10]

    def test_if_branches_share_branch_id(self, counter_ast):
        """True and false paths are two paths of one branch."""
        items = Visitor().visit_ast(counter_ast, SOURCE)
        branches = [item for item in items if item.kind == ItemKind.BRANCH]

        assert [(b.branch_id, b.path_id) for b in branches] == [(0, 0), (0, 1)]

    def test_items_start_unhit(self, counter_ast):
        items = Visitor().visit_ast(counter_ast, SOURCE)
        assert all(item.hits == 0 for item in items)

    def test_deterministic(self, counter_ast):
        """The same AST always yields the same items."""
        first = Visitor().visit_ast(counter_ast, SOURCE)
        second = Visitor().visit_ast(copy.deepcopy(counter_ast), SOURCE)
        assert first == second

    def test_visitor_reuse_resets_state(self, counter_ast):
        visitor = Visitor()
        visitor.visit_ast(counter_ast, SOURCE)
        items = visitor.visit_ast(counter_ast, SOURCE)

        assert len(items) == 6
        assert items[2].branch_id == 0

    def test_if_without_else(self, counter_ast):
        """Only the true path becomes a branch item when there is no else."""
        if_statement = counter_ast["nodes"][1]["nodes"][1]["body"]["statements"][0]
        if_statement["falseBody"] = None

        items = Visitor().visit_ast(counter_ast, SOURCE)
        branches = [item for item in items if item.kind == ItemKind.BRANCH]

        assert len(items) == 4
        assert [(b.branch_id, b.path_id) for b in branches] == [(0, 0)]


class TestVisitorEdgeCases:
    """Tests for unusual ASTs."""

    def test_rejects_non_source_unit(self):
        with pytest.raises(VisitorError, match="SourceUnit"):
            Visitor().visit_ast({"nodeType": "ContractDefinition", "src": "0:1:0"})

    def test_interface_yields_no_items(self):
        """Functions without a body have no executable code."""
        ast = _source_unit(
            {
                "nodeType": "ContractDefinition",
                "src": "0:50:0",
                "nodes": [{"nodeType": "FunctionDefinition", "src": "20:25:0", "body": None}],
            }
        )
        assert Visitor().visit_ast(ast) == []

    def test_empty_source_unit(self):
        assert Visitor().visit_ast(_source_unit()) == []

    def test_malformed_src_raises(self):
        ast = _source_unit(
            {
                "nodeType": "FunctionDefinition",
                "src": "broken",
                "body": {"nodeType": "Block", "src": "0:2:0", "statements": []},
            }
        )
        with pytest.raises(VisitorError):
            Visitor().visit_ast(ast)

    def test_modifier_placeholder(self):
        ast = _source_unit(
            {
                "nodeType": "ModifierDefinition",
                "src": "0:40:0",
                "body": {
                    "nodeType": "Block",
                    "src": "20:20:0",
                    "statements": [{"nodeType": "PlaceholderStatement", "src": "30:2:0"}],
                },
            }
        )
        items = Visitor().visit_ast(ast)
        assert [item.kind for item in items] == [ItemKind.LINE, ItemKind.STATEMENT]

    def test_conditional_expression_branches(self):
        ast = _source_unit(
            {
                "nodeType": "FunctionDefinition",
                "src": "0:60:0",
                "body": {
                    "nodeType": "Block",
                    "src": "10:50:0",
                    "statements": [
                        {
                            "nodeType": "Return",
                            "src": "20:30:0",
                            "expression": {
                                "nodeType": "Conditional",
                                "src": "27:22:0",
                                "condition": {"nodeType": "Identifier", "src": "27:1:0"},
                                "trueExpression": {"nodeType": "Literal", "src": "31:1:0"},
                                "falseExpression": {"nodeType": "Literal", "src": "35:1:0"},
                            },
                        }
                    ],
                },
            }
        )
        items = Visitor().visit_ast(ast)
        branches = [item for item in items if item.kind == ItemKind.BRANCH]

        assert [(b.start, b.path_id) for b in branches] == [(31, 0), (35, 1)]

    def test_try_clauses_are_branch_paths(self):
        ast = _source_unit(
            {
                "nodeType": "FunctionDefinition",
                "src": "0:90:0",
                "body": {
                    "nodeType": "Block",
                    "src": "10:80:0",
                    "statements": [
                        {
                            "nodeType": "TryStatement",
                            "src": "20:60:0",
                            "externalCall": {"nodeType": "FunctionCall", "src": "24:10:0"},
                            "clauses": [
                                {
                                    "nodeType": "TryCatchClause",
                                    "src": "35:10:0",
                                    "block": {"nodeType": "Block", "src": "35:10:0", "statements": []},
                                },
                                {
                                    "nodeType": "TryCatchClause",
                                    "src": "46:20:0",
                                    "block": {"nodeType": "Block", "src": "52:14:0", "statements": []},
                                },
                            ],
                        }
                    ],
                },
            }
        )
        items = Visitor().visit_ast(ast)
        branches = [item for item in items if item.kind == ItemKind.BRANCH]

        assert items[1].kind == ItemKind.STATEMENT
        assert [(b.branch_id, b.path_id) for b in branches] == [(0, 0), (0, 1)]

    def test_unknown_node_types_are_descended(self):
        """Statements nested under unfamiliar nodes are still found."""
        ast = _source_unit(
            {
                "nodeType": "FunctionDefinition",
                "src": "0:40:0",
                "body": {
                    "nodeType": "SomeFutureBlock",
                    "src": "10:30:0",
                    "inner": [{"nodeType": "ExpressionStatement", "src": "12:5:0"}],
                },
            }
        )
        items = Visitor().visit_ast(ast)
        assert [item.kind for item in items] == [ItemKind.LINE, ItemKind.STATEMENT]
