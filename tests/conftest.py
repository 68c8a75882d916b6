"""Shared fixtures for Recograph tests."""

import sys

import pytest

from recograph import Recograph
from recograph.engine import Category, Edge, Product, ProductGraph, RelationshipKind

SHOP_DATABASE = """\
CentralUnit contains Intel7700K(id=107)
CentralUnit contains GraphicsCard
GraphicsCard contains RTX3070(id=201)
GraphicsCard contains RTX2070(id=202)
GraphicsCard contains RX6800(id=203)
RTX3070(id=201) successor-of RTX2070(id=202)
RTX2070(id=202) successor-of GTX1070(id=204)
RTX3070(id=201) part-of Gamer(id=300)
"""


@pytest.fixture()
def graph():
    """Fresh, empty ProductGraph."""
    return ProductGraph()


@pytest.fixture()
def shoes_graph():
    """Two shoes in one category, plus a successor chain.

    Edges (as added; inverses are added automatically):
        shoes contains boot:1
        shoes contains sandal:2
        boot:1 successor-of sneaker:3
    """
    g = ProductGraph()
    shoes = Category("Shoes")
    boot = Product("Boot", 1)
    sandal = Product("Sandal", 2)
    sneaker = Product("Sneaker", 3)
    for node in (shoes, boot, sandal, sneaker):
        g.add_node(node)
    g.add_edge(Edge(shoes, boot, RelationshipKind.CONTAINS))
    g.add_edge(Edge(shoes, sandal, RelationshipKind.CONTAINS))
    g.add_edge(Edge(boot, sneaker, RelationshipKind.SUCCESSOR_OF))
    return g


@pytest.fixture()
def shop_text():
    """Hardware shop database text.

    Categories: centralunit, graphicscard
    Products: intel7700k:107, rtx3070:201, rtx2070:202, rx6800:203,
        gtx1070:204, gamer:300
    Generations: gtx1070 -> rtx2070 -> rtx3070 (each successor-of the previous)
    """
    return SHOP_DATABASE


@pytest.fixture()
def client():
    """Fresh, empty Recograph client."""
    return Recograph()


@pytest.fixture()
def shop(shop_text):
    """Recograph client loaded with the hardware shop database."""
    rg = Recograph()
    rg.loads(shop_text)
    return rg


@pytest.fixture()
def shop_file(tmp_path, shop_text):
    """The hardware shop database written to a temporary file."""
    path = tmp_path / "shop.txt"
    path.write_text(shop_text, encoding="utf-8")
    return path


@pytest.fixture()
def oversized_id():
    """Digit string longer than the interpreter's int conversion limit."""
    limit = getattr(sys, "get_int_max_str_digits", lambda: 0)()
    if not limit:
        pytest.skip("int string conversion is unlimited")
    return "1" * (limit + 1)
