"""
Per-prefix sequence numbers for generated codes (product codes, batch and serial codes).

Numbers continue from the highest numeric suffix stored under the exact prefix,
so a number freed by a deleted product is handed out again. The counter row for
the prefix is locked while the maximum is read; a second writer under the same
prefix waits for the first to commit and then sees its row.
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from catalog.models.product import Product, SequenceCounter
from catalog.utils.identifiers import pad4

logger = logging.getLogger(__name__)

SEQUENCED_ATTRIBUTES = frozenset({
    "product_code",
    "factory_batch_code",
    "label_serial_code",
    "tag_serial_code",
})


def _insert_for(dialect_name: str):
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
        return insert
    if dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
        return insert
    return None


class SequenceAllocator:
    def __init__(self, session: Session):
        self.session = session

    @staticmethod
    def _column(attribute: str):
        if attribute not in SEQUENCED_ATTRIBUTES:
            raise ValueError(f"{attribute!r} is not a sequenced column")
        return getattr(Product, attribute)

    def current_max(self, prefix: str, attribute: str) -> int:
        """Highest numeric suffix stored under ``prefix`` (0 when there is none)."""
        column = self._column(attribute)
        values = self.session.execute(
            select(column).where(column.startswith(prefix, autoescape=True))
        ).scalars()

        highest = 0
        for value in values:
            suffix = str(value)[len(prefix):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return highest

    def _ensure_counter_row(self, prefix: str, attribute: str):
        insert = _insert_for(self.session.get_bind().dialect.name)
        if insert is not None:
            stmt = insert(SequenceCounter).values(prefix=prefix, attribute=attribute, value=0)
            self.session.execute(stmt.on_conflict_do_nothing(index_elements=["prefix", "attribute"]))
            return
        exists = self.session.get(SequenceCounter, (prefix, attribute))
        if exists is None:
            self.session.add(SequenceCounter(prefix=prefix, attribute=attribute, value=0))
            self.session.flush()

    def next_sequence(self, prefix: str, attribute: str = "product_code") -> int:
        self._column(attribute)
        self._ensure_counter_row(prefix, attribute)

        counter = self.session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.prefix == prefix, SequenceCounter.attribute == attribute)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one()

        # The locked row serializes writers; the stored rows decide the number
        counter.value = self.current_max(prefix, attribute) + 1
        self.session.flush()

        logger.debug(f"[sequences] {attribute} {prefix} -> {counter.value}")
        return counter.value

    def next_code(self, prefix: str, attribute: str = "product_code") -> str:
        return prefix + pad4(self.next_sequence(prefix, attribute))
