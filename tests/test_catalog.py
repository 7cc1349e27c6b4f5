from backend.app.catalog import PRODUCTS, filter_options, filter_products, get_product


def test_all_means_no_filter():
    assert filter_products() == PRODUCTS
    assert filter_products(category="All", color="All", occasion="All") == PRODUCTS


def test_filters_combine():
    hits = filter_products(color="Gold", occasion="Wedding")
    assert hits
    assert all(p.color == "Gold" and p.occasion == "Wedding" for p in hits)
    assert filter_products(category="Kurtas", color="Black", occasion="Formal") == [
        p for p in PRODUCTS if (p.category, p.color, p.occasion) == ("Kurtas", "Black", "Formal")
    ]


def test_filter_options_are_distinct_and_lead_with_all():
    opts = filter_options()
    for field in ("category", "color", "occasion"):
        values = opts[field]
        assert values[0] == "All"
        assert len(values) == len(set(values))
        assert set(values[1:]) == {getattr(p, field) for p in PRODUCTS}


def test_get_product():
    assert get_product("1").name == "Royal Blue Velvet Blazer"
    assert get_product("42") is None
