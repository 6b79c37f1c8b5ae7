import json
from unittest.mock import MagicMock

from app.models.product import ProductFilter
from app.patterns.find_product import FindProductBuilder, FindProductEngineer


def test_id_and_search_filters():
    req = ProductFilter(id="P3", search="Mug", order_by="price", sort_by="DESC", page=1, limit=20)
    state = FindProductBuilder(req).build_find()

    assert '"p"."id" = :p1' in state.query
    assert 'LOWER("p"."title") LIKE :p2' in state.query
    assert 'LOWER("p"."description") LIKE :p3' in state.query
    assert 'ORDER BY "p"."price" DESC' in state.query
    assert state.params == {"p1": "P3", "p2": "%mug%", "p3": "%mug%", "p4": 0, "p5": 20}


def test_default_sort_is_title_ascending():
    sql = FindProductBuilder(ProductFilter(order_by="rating")).build_find().query
    assert 'ORDER BY "p"."title" ASC' in sql


def test_count_has_no_aggregation():
    state = FindProductBuilder(ProductFilter(search="mug")).build_count()
    assert "array_agg" not in state.query
    assert state.params == {"p1": "%mug%", "p2": "%mug%"}


def test_products_decode_with_category_and_images():
    rows = [{
        "id": "P1",
        "title": "Mug",
        "description": "Blue",
        "price": 4.5,
        "category": {"id": 2, "title": "Kitchen"},
        "images": [{"id": "i1", "filename": "a.png", "url": "http://x/a.png"}],
        "created_at": None,
        "updated_at": None,
    }]
    db = MagicMock()
    db.execute.return_value.scalar.return_value = json.dumps(rows)

    products = FindProductEngineer(db, FindProductBuilder(ProductFilter())).find_product()

    assert products[0].category.title == "Kitchen"
    assert products[0].images[0].filename == "a.png"
