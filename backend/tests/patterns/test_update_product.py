from unittest.mock import MagicMock

import pytest

from app.models.appinfo import Category
from app.models.common import Image
from app.models.product import ProductReq
from app.patterns.update_product import UpdateProductBuilder, UpdateProductEngineer
from app.utils.errors import AppError, ErrorKind


def updated(rowcount: int = 1) -> MagicMock:
    result = MagicMock()
    result.rowcount = rowcount
    return result


def old_images(*filenames: str) -> MagicMock:
    result = MagicMock()
    result.mappings.return_value.all.return_value = [
        {"id": f"i{n}", "filename": name, "url": f"http://x/{name}"} for n, name in enumerate(filenames)
    ]
    return result


def test_price_only_update_sets_only_price():
    state = UpdateProductBuilder(MagicMock(), "P1", ProductReq(price=19.99), MagicMock()).build_update()

    assert '"price" = :p1' in state.query
    assert '"id" = :p2' in state.query
    assert '"title"' not in state.query
    assert '"description"' not in state.query
    assert state.params == {"p1": 19.99, "p2": "P1"}


def test_skipped_fields_leave_no_placeholder_gap():
    req = ProductReq(title="Mug", price=4.5)
    state = UpdateProductBuilder(MagicMock(), "P1", req, MagicMock()).build_update()
    assert '"title" = :p1' in state.query
    assert '"price" = :p2' in state.query
    assert '"id" = :p3' in state.query
    assert state.params == {"p1": "Mug", "p2": 4.5, "p3": "P1"}


def test_no_header_fields_builds_nothing():
    assert UpdateProductBuilder(MagicMock(), "P1", ProductReq(), MagicMock()).build_update() is None


def test_empty_request_only_opens_and_commits():
    db = MagicMock()
    files = MagicMock()
    UpdateProductEngineer(UpdateProductBuilder(db, "P1", ProductReq(), files)).update_product()

    assert db.execute.call_count == 1  # SET LOCAL statement_timeout
    db.commit.assert_called_once()
    files.delete_files.assert_not_called()


def test_price_only_engineer_leaves_category_and_images():
    db = MagicMock()
    db.execute.side_effect = [MagicMock(), updated()]
    files = MagicMock()

    UpdateProductEngineer(UpdateProductBuilder(db, "P1", ProductReq(price=19.99), files)).update_product()

    assert db.execute.call_count == 2
    files.delete_files.assert_not_called()
    db.commit.assert_called_once()


def test_missing_product_is_not_found_and_rolled_back():
    db = MagicMock()
    db.execute.side_effect = [MagicMock(), updated(rowcount=0)]

    with pytest.raises(AppError) as exc:
        UpdateProductEngineer(UpdateProductBuilder(db, "P404", ProductReq(title="x"), MagicMock())).update_product()

    assert exc.value.kind == ErrorKind.NOT_FOUND
    db.rollback.assert_called_once()
    db.commit.assert_not_called()


def test_category_reassignment_runs_in_same_transaction():
    db = MagicMock()
    req = ProductReq(category=Category(id=3, title="Kitchen"))
    UpdateProductEngineer(UpdateProductBuilder(db, "P1", req, MagicMock())).update_product()

    sql, params = db.execute.call_args_list[1].args
    assert 'INSERT INTO "products_categories"' in sql.text
    assert 'ON CONFLICT ("product_id") DO UPDATE' in sql.text
    assert params == {"p1": 3, "p2": "P1"}
    db.commit.assert_called_once()


def test_image_replacement_deletes_stored_objects_then_rows():
    db = MagicMock()
    db.execute.side_effect = [MagicMock(), old_images("a.png", "b.png"), MagicMock(), MagicMock()]
    files = MagicMock()
    req = ProductReq(images=[Image(filename="c.png", url="http://x/c.png")])

    UpdateProductEngineer(UpdateProductBuilder(db, "P1", req, files)).update_product()

    deleted = [r.destination for r in files.delete_files.call_args.args[0]]
    assert deleted == ["images/products/a.png", "images/products/b.png"]
    delete_sql = db.execute.call_args_list[2].args[0].text
    insert_sql, insert_params = db.execute.call_args_list[3].args
    assert delete_sql.startswith('DELETE FROM "images"')
    assert 'INSERT INTO "images"' in insert_sql.text
    assert insert_params == {"p1": "c.png", "p2": "http://x/c.png", "p3": "P1"}
    db.commit.assert_called_once()


def test_storage_failure_rolls_back_update():
    db = MagicMock()
    db.execute.side_effect = [MagicMock(), updated(), old_images("a.png")]
    files = MagicMock()
    files.delete_files.side_effect = AppError(ErrorKind.STORAGE, "bucket unavailable")
    req = ProductReq(title="New", images=[Image(filename="c.png", url="http://x/c.png")])

    with pytest.raises(AppError) as exc:
        UpdateProductEngineer(UpdateProductBuilder(db, "P1", req, files)).update_product()

    assert exc.value.kind == ErrorKind.STORAGE
    db.rollback.assert_called_once()
    db.commit.assert_not_called()
