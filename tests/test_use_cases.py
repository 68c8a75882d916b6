"""Use case integration tests.

Each test class walks through a workflow using only the public Recograph
API. Domain-specific graphs are built in per-class fixtures.
"""

import pytest

from recograph import Recograph

# ---------------------------------------------------------------------------
# Shoe shop
# ---------------------------------------------------------------------------


class TestShoeShop:
    @pytest.fixture()
    def shop(self):
        rg = Recograph()
        rg.add("Shoes contains Boot(id=1)")
        rg.add("Shoes contains Sandal(id=2)")
        return rg

    def test_siblings(self, shop):
        assert [str(p) for p in shop.recommend("S1 1")] == ["sandal:2"]

    def test_successor_of_points_at_older_product(self):
        rg = Recograph()
        rg.add("Boot(id=1) successor-of Sneaker(id=2)")
        # Boot succeeds Sneaker, so Boot is among Sneaker's successors
        assert [str(p) for p in rg.recommend("S2 2")] == ["boot:1"]
        assert [str(p) for p in rg.recommend("S3 1")] == ["sneaker:2"]
        assert rg.recommend("S2 1") == []

    def test_union_of_leaves_with_own_ids(self):
        rg = Recograph()
        rg.add("Shoes contains Boot(id=1)")
        rg.add("Shoes contains Clog(id=3)")
        rg.add("Loafer(id=4) successor-of Oxford(id=2)")
        # S1 1 = {clog}; S2 2 = {loafer}
        assert [str(p) for p in rg.recommend("UNION(S1 1, S2 2)")] == ["clog:3", "loafer:4"]

    def test_removing_last_product_drops_category(self, shop):
        shop.remove("Shoes contains Boot(id=1)")
        shop.remove("Shoes contains Sandal(id=2)")
        assert shop.nodes() == []


# ---------------------------------------------------------------------------
# Hardware catalogue
# ---------------------------------------------------------------------------


class TestHardwareCatalogue:
    def test_upgrade_path(self, shop):
        assert [str(p) for p in shop.recommend("S2 204")] == ["rtx2070:202", "rtx3070:201"]

    def test_alternatives_that_are_also_older(self, shop):
        assert [str(p) for p in shop.recommend("INTERSECTION(S1 201, S3 201)")] == [
            "rtx2070:202"
        ]

    def test_new_generation_extends_upgrade_path(self, shop):
        shop.add("RTX4070(id=205) successor-of RTX3070(id=201)")
        shop.add("GraphicsCard contains RTX4070(id=205)")
        assert [str(p) for p in shop.recommend("S2 202")] == ["rtx3070:201", "rtx4070:205"]
        assert "rtx4070:205" in [str(p) for p in shop.recommend("S1 203")]

    def test_reload_discards_edits(self, shop, shop_file):
        shop.add("RTX4070(id=205) successor-of RTX3070(id=201)")
        shop.load(shop_file)
        assert "rtx4070:205" not in [str(n) for n in shop.nodes()]
