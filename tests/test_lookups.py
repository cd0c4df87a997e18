import logging

from sqlalchemy.exc import DataError, OperationalError

from catalog.exceptions import LookupFailure, LookupResult, ValidationFailure
from catalog.services.codegen import generate_all
from catalog.services.lookups import (
    CategoryInfo,
    inline_category_hint,
    lookup_factory_code,
    lookup_first_category,
)


def test_attempt_wraps_missing_row():
    result = LookupResult.attempt(lambda: None, "category", 9)

    assert not result.succeeded
    assert result.error.entity == "category"
    assert result.error.key == 9


def test_attempt_wraps_database_errors():
    def boom():
        raise OperationalError("SELECT 1", {}, Exception("connection lost"))

    result = LookupResult.attempt(boom, "factory", 2)

    assert not result.succeeded
    assert "connection lost" in result.error.reason


def test_recover_logs_and_falls_back(caplog):
    result = LookupResult.failed(LookupFailure("factory", 3))

    with caplog.at_level(logging.WARNING, logger="catalog.exceptions"):
        assert result.recover("NA", context="codegen") == "NA"

    assert "[codegen]" in caplog.text
    assert "factory 3" in caplog.text


def test_recover_returns_found_value():
    assert LookupResult.found("DK01").recover("NA") == "DK01"


def test_validation_failure_payload():
    exc = ValidationFailure("Cannot publish product: missing name", errors=["name"])

    assert exc.status_code == 400
    assert exc.to_dict() == {"detail": "Cannot publish product: missing name", "errors": ["name"]}


def test_first_category_from_database(db_session, reference_data):
    result = lookup_first_category(db_session, {"categories": [2, 1]})

    assert result.value == CategoryInfo(name="Jeans", code="JNS", hs_code="6203.42")


def test_missing_category_is_a_failure(db_session, reference_data):
    result = lookup_first_category(db_session, {"categories": [99]})

    assert not result.succeeded
    assert result.recover(CategoryInfo()).seed == "GEN"


def test_product_without_category_is_not_a_failure(db_session):
    result = lookup_first_category(db_session, {"name": "Tee"})

    assert result.succeeded
    assert result.value.seed == "GEN"


def test_inline_category_hint():
    hint = inline_category_hint({"categories": [{"id": 1, "code": "TSH", "name": "T-Shirts"}]})

    assert hint == CategoryInfo(name="T-Shirts", code="TSH")
    assert hint.seed == "TSH"
    assert inline_category_hint({"categories": [{"id": 1}]}) is None
    assert inline_category_hint({"categories": [1]}) is None


def test_category_seed_prefers_code_then_name():
    assert CategoryInfo(name="Jeans", code="JNS").seed == "JNS"
    assert CategoryInfo(name="Jeans").seed == "Jeans"


def test_factory_code(db_session, reference_data):
    assert lookup_factory_code(db_session, {"factory": 1}).value == "DK01"
    assert lookup_factory_code(db_session, {"factory": {"data": {"id": 1}}}).value == "DK01"
    assert lookup_factory_code(db_session, {}).value == "NA"


def test_missing_factory_is_a_failure(db_session, reference_data):
    result = lookup_factory_code(db_session, {"factory": 404})

    assert not result.succeeded
    assert result.recover("NA") == "NA"


def test_failed_lookup_runs_in_savepoint_and_sequencing_continues(db_session, reference_data, now, monkeypatch):
    in_savepoint = []

    def failing_get(entity, ident, **kwargs):
        in_savepoint.append(db_session.in_nested_transaction())
        raise DataError("SELECT categories", {"pk_1": ident}, Exception("invalid input syntax for type integer"))

    monkeypatch.setattr(db_session, "get", failing_get)

    out = generate_all({"name": "Tee", "categories": ["abc"], "factory": "xyz"}, session=db_session, now=now)

    assert in_savepoint == [True, True]
    assert not db_session.in_nested_transaction()
    assert out["product_code"] == "GEN-25-0001"
    assert out["factory_batch_code"] == "FB-NA-20250615-0001"
