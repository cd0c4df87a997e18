import pytest

from catalog.models.product import SequenceCounter
from catalog.services.sequences import SequenceAllocator


def test_first_code_under_a_prefix(db_session):
    allocator = SequenceAllocator(db_session)
    assert allocator.next_code("TSH-25-") == "TSH-25-0001"


def test_continues_after_highest_stored_suffix(db_session, make_product):
    make_product(product_code="TSH-25-0003")
    make_product(product_code="TSH-25-0007")
    make_product(product_code="TSH-24-0042")

    allocator = SequenceAllocator(db_session)

    assert allocator.current_max("TSH-25-", "product_code") == 7
    assert allocator.next_code("TSH-25-") == "TSH-25-0008"


def test_number_of_deleted_product_is_reused(db_session, make_product):
    allocator = SequenceAllocator(db_session)
    first = allocator.next_code("TSH-25-")
    product = make_product(product_code=first)

    db_session.delete(product)
    db_session.commit()

    assert first == "TSH-25-0001"
    assert allocator.next_code("TSH-25-") == "TSH-25-0001"


def test_counter_row_records_last_number(db_session, make_product):
    make_product(product_code="TSH-25-0004")

    SequenceAllocator(db_session).next_code("TSH-25-")

    counter = db_session.get(SequenceCounter, ("TSH-25-", "product_code"))
    assert counter.value == 5


def test_prefixes_and_attributes_are_independent(db_session, make_product):
    make_product(product_code="TSH-25-0005", label_serial_code="LBL-2506-0009")
    allocator = SequenceAllocator(db_session)

    assert allocator.next_code("JNS-25-") == "JNS-25-0001"
    assert allocator.next_code("LBL-2506-", "label_serial_code") == "LBL-2506-0010"
    assert allocator.next_code("TAG-2506-", "tag_serial_code") == "TAG-2506-0001"


def test_prefix_match_is_exact(db_session, make_product):
    make_product(product_code="TSHX-25-0009")
    make_product(product_code="TS-25-0004")

    allocator = SequenceAllocator(db_session)

    assert allocator.next_code("TS-25-") == "TS-25-0005"


def test_non_numeric_suffixes_are_ignored(db_session, make_product):
    make_product(factory_batch_code="FB-NA-20250615-00A1")
    make_product(factory_batch_code="FB-NA-20250615-0002")

    allocator = SequenceAllocator(db_session)

    assert allocator.next_code("FB-NA-20250615-", "factory_batch_code") == "FB-NA-20250615-0003"


def test_sequence_past_four_digits_keeps_counting(db_session, make_product):
    make_product(product_code="TSH-25-9999")
    allocator = SequenceAllocator(db_session)

    assert allocator.next_code("TSH-25-") == "TSH-25-10000"


def test_rejects_unsequenced_attribute(db_session):
    with pytest.raises(ValueError):
        SequenceAllocator(db_session).next_sequence("X-", "name")
