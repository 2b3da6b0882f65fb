from conftest import product
from lowcost_groceries.models import Job, JobStatus
from lowcost_groceries.results import best_price_group, build_results, other_stores_label


def _job(results, **kwargs):
    return Job(id="abc123", status=JobStatus.COMPLETE, results=results, **kwargs)


def test_tied_best_price_group():
    products = [product("A", 3.50), product("B", 3.50), product("C", 4.00)]
    group = best_price_group(products)

    assert [p.merchant for p in group.best] == ["A", "B"]
    assert group.price == 3.50
    assert group.shown.merchant == "A"
    assert len(group.collapsed) == 1
    assert "C" not in [p.merchant for p in group.best]


def test_ties_keep_server_order():
    products = [product("C", 4.00), product("B", 2.00), product("A", 2.00), product("D", 2.00)]
    group = best_price_group(products)
    assert [p.merchant for p in group.best] == ["B", "A", "D"]


def test_single_best():
    group = best_price_group([product("C", 4.00), product("A", 1.99)])
    assert group.shown.merchant == "A"
    assert group.collapsed == ()


def test_empty_products():
    assert best_price_group([]) is None


def test_missing_item_gets_no_results_card():
    view = build_results(["milk", "eggs"], _job({"milk": [product("A", 3.50)]}), fallback_zip="02139")

    assert [i.name for i in view.items] == ["milk", "eggs"]
    assert view.items[0].found
    assert not view.items[1].found
    assert view.summary.items_found == 1
    assert view.summary.total_items == 2
    assert view.summary.total_products == 1
    assert view.summary.zip_code == "02139"
    assert view.summary.processing_time == "-"


def test_summary_counts_and_time():
    results = {
        "milk": [product("A", 3.50), product("B", 3.50), product("C", 4.00)],
        "bread": [product("A", 2.25)],
        "eggs": [],
    }
    view = build_results(["milk", "bread", "eggs"], _job(results, total_time=12.345, zip_code="10001"))

    assert view.summary.items_found == 2
    assert view.summary.total_products == 4
    assert view.summary.processing_time == "12.3s"
    assert view.summary.zip_code == "10001"


def test_lookup_is_exact_name():
    view = build_results(["Milk"], _job({"milk": [product("A", 3.50)]}))
    assert not view.items[0].found


def test_other_stores_label():
    assert other_stores_label(1) == "+ 1 other store"
    assert other_stores_label(3) == "+ 3 other stores"
