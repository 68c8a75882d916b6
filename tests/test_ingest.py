"""Tests for database line parsing and loading."""

import pytest

from recograph.engine import Category, Edge, Product, ProductGraph, RelationshipKind
from recograph.errors import DatabaseFormatError, EdgeRejection, ProductIdConflictError
from recograph.ingest import (
    NodeSpec,
    Triple,
    apply_triple,
    find_product_id_conflict,
    load_database,
    load_database_file,
    parse_database,
    parse_line,
    parse_node_spec,
)


class TestParseNodeSpec:
    def test_category(self):
        assert parse_node_spec("Shoes") == NodeSpec("Shoes")

    def test_product(self):
        assert parse_node_spec("Boot(id=1)") == NodeSpec("Boot", 1)

    def test_product_with_inner_whitespace(self):
        assert parse_node_spec("Boot ( id = 12 )") == NodeSpec("Boot", 12)

    @pytest.mark.parametrize("text", ["Boot-X", "Boot(id=)", "Boot(id=-1)", "Boot(ID=1)", ""])
    def test_invalid(self, text):
        with pytest.raises(DatabaseFormatError):
            parse_node_spec(text)

    def test_oversized_id(self, oversized_id):
        with pytest.raises(DatabaseFormatError, match="too long"):
            parse_node_spec(f"Boot(id={oversized_id})")

    def test_to_node(self):
        assert isinstance(NodeSpec("Shoes").to_node(), Category)
        product = NodeSpec("Boot", 1).to_node()
        assert isinstance(product, Product)
        assert product.id == 1

    def test_matches(self):
        assert NodeSpec("Shoes").matches(Category("shoes"))
        assert not NodeSpec("Shoes").matches(Product("shoes", 1))
        assert NodeSpec("Boot", 1).matches(Product("BOOT", 1))
        assert not NodeSpec("Boot", 1).matches(Product("boot", 2))

    def test_str(self):
        assert str(NodeSpec("Boot", 1)) == "Boot(id=1)"
        assert str(NodeSpec("Shoes")) == "Shoes"


class TestParseLine:
    def test_contains(self):
        triple = parse_line("Shoes contains Boot(id=1)")
        assert triple == Triple(NodeSpec("Shoes"), RelationshipKind.CONTAINS, NodeSpec("Boot", 1))

    def test_predicate_case_insensitive(self):
        triple = parse_line("Boot(id=1) SUCCESSOR-OF Sneaker(id=2)")
        assert triple.relationship is RelationshipKind.SUCCESSOR_OF

    def test_extra_whitespace(self):
        triple = parse_line("  Boot(id=1)   contained-in\tShoes  ")
        assert triple.relationship is RelationshipKind.CONTAINED_IN
        assert triple.object == NodeSpec("Shoes")

    def test_str(self):
        assert str(parse_line("boot(id=1) part-of Kit(id=9)")) == "boot(id=1) part-of Kit(id=9)"

    @pytest.mark.parametrize(
        "line",
        [
            "Shoes contains",
            "Shoes Boot(id=1)",
            "Shoes sibling-of Boot(id=1)",
            "Shoes contains Boot(id=1) extra",
            "Sho es contains Boot(id=1)",
        ],
    )
    def test_malformed(self, line):
        with pytest.raises(DatabaseFormatError):
            parse_line(line)

    @pytest.mark.parametrize(
        "line",
        [
            "Boot(id=1) contains Sandal(id=2)",
            "Shoes contained-in Boot(id=1)",
            "Shoes successor-of Boot(id=1)",
            "Boot(id=1) part-of Kit",
        ],
    )
    def test_invalid_kind_for_endpoints(self, line):
        with pytest.raises(DatabaseFormatError, match="cannot connect"):
            parse_line(line)

    def test_line_number_in_message(self):
        with pytest.raises(DatabaseFormatError, match="line 7") as exc_info:
            parse_line("nonsense", 7)
        assert exc_info.value.line_number == 7


class TestParseDatabase:
    def test_skips_blank_lines_and_numbers_from_one(self):
        lines = parse_database("\nShoes contains Boot(id=1)\n   \nShoes contains Sandal(id=2)\n")
        assert [p.number for p in lines] == [2, 4]

    def test_malformed_line_reports_number(self):
        with pytest.raises(DatabaseFormatError) as exc_info:
            parse_database("Shoes contains Boot(id=1)\nShoes has Sandal(id=2)\n")
        assert exc_info.value.line_number == 2

    def test_product_id_conflict(self):
        text = "Shoes contains Boot(id=1)\nShoes contains Sandal(id=1)\n"
        with pytest.raises(ProductIdConflictError) as exc_info:
            parse_database(text)
        assert exc_info.value.product_id == 1
        assert exc_info.value.line_number == 2

    def test_same_product_different_case_is_not_a_conflict(self):
        lines = parse_database("Shoes contains Boot(id=1)\nBOOT(id=1) successor-of Sneaker(id=2)")
        assert len(lines) == 2


class TestApplyTriple:
    def test_adds_nodes_and_edge(self, graph):
        assert apply_triple(graph, parse_line("Shoes contains Boot(id=1)")) is None
        assert graph.has_edge(Edge(Category("Shoes"), Product("Boot", 1), RelationshipKind.CONTAINS))
        assert len(graph) == 2

    def test_reuses_existing_node(self, shoes_graph):
        assert apply_triple(shoes_graph, parse_line("shoes contains Slipper(id=4)")) is None
        assert len(shoes_graph.categories()) == 1

    def test_identity_conflict_kind(self, shoes_graph):
        rejection = apply_triple(shoes_graph, parse_line("Shoes(id=5) part-of Boot(id=1)"))
        assert rejection is EdgeRejection.IDENTITY_CONFLICT

    def test_identity_conflict_id(self, shoes_graph):
        rejection = apply_triple(shoes_graph, parse_line("Boot(id=9) part-of Kit(id=10)"))
        assert rejection is EdgeRejection.IDENTITY_CONFLICT
        assert not shoes_graph.has_node("kit")

    def test_rejected_line_leaves_no_new_nodes(self, shoes_graph):
        before = shoes_graph.nodes()
        rejection = apply_triple(shoes_graph, parse_line("Kit(id=10) part-of Shoes(id=7)"))
        assert rejection is EdgeRejection.IDENTITY_CONFLICT
        assert shoes_graph.nodes() == before
        assert shoes_graph.validate()["warnings"] == []

    def test_duplicate_edge(self, shoes_graph):
        rejection = apply_triple(shoes_graph, parse_line("Boot(id=1) contained-in Shoes"))
        assert rejection is EdgeRejection.DUPLICATE_EDGE
        assert len(shoes_graph.edges()) == 6


class TestFindProductIdConflict:
    def test_conflict_with_existing_product(self, shoes_graph):
        conflict = find_product_id_conflict(shoes_graph, parse_line("Shoes contains Clog(id=1)"))
        assert isinstance(conflict, ProductIdConflictError)
        assert conflict.existing_name == "Boot"
        assert conflict.conflicting_name == "Clog"

    def test_same_name_is_fine(self, shoes_graph):
        assert find_product_id_conflict(shoes_graph, parse_line("Shoes contains BOOT(id=1)")) is None

    def test_unused_id_is_fine(self, shoes_graph):
        assert find_product_id_conflict(shoes_graph, parse_line("Shoes contains Clog(id=8)")) is None


class TestLoadDatabase:
    def test_builds_graph(self, shop_text):
        graph, report = load_database(shop_text)
        assert isinstance(graph, ProductGraph)
        assert len(graph) == 8
        assert len(graph.edges()) == 16
        assert report.line_count == 8
        assert report.accepted_count == 8
        assert report.skipped == []
        assert graph.validate()["valid"] is True

    def test_soft_rejects_are_reported(self, caplog):
        text = (
            "Shoes contains Boot(id=1)\n"
            "Shoes contains Boot(id=1)\n"
            "Boot(id=1) part-of Shoes(id=2)\n"
            "Shoes contains Sandal(id=3)\n"
        )
        with caplog.at_level("WARNING", logger="recograph.ingest"):
            graph, report = load_database(text)
        assert report.accepted_count == 2
        assert [(s.line_number, s.reason) for s in report.skipped] == [
            (2, "duplicate_edge"),
            (3, "identity_conflict"),
        ]
        assert {str(n) for n in graph.nodes()} == {"shoes", "boot:1", "sandal:3"}
        assert "Skipping line 2" in caplog.text

    def test_malformed_line_commits_nothing(self):
        with pytest.raises(DatabaseFormatError):
            load_database("Shoes contains Boot(id=1)\nBoot(id=1) contains Shoes\n")

    def test_oversized_id_reports_line(self, oversized_id):
        with pytest.raises(DatabaseFormatError) as exc_info:
            load_database(f"Shoes contains Boot(id=1)\nShoes contains Clog(id={oversized_id})\n")
        assert exc_info.value.line_number == 2

    def test_empty_text(self):
        graph, report = load_database("")
        assert len(graph) == 0
        assert report.line_count == 0

    def test_load_file(self, shop_file):
        graph, report = load_database_file(shop_file)
        assert graph.find_product(201).name == "RTX3070"
        assert report.accepted_count == 8

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_database_file(tmp_path / "missing.txt")
