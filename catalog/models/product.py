from sqlalchemy import (
    Column, Integer, String, Text, Numeric, DateTime, ForeignKey, Table, JSON,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from catalog.database import Base


product_categories = Table(
    "product_categories",
    Base.metadata,
    Column("product_id", Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    code = Column(String(64), nullable=True)
    hs_code = Column(String(32), nullable=True)

    def __repr__(self):
        return f"<Category(id={self.id}, code='{self.code}')>"


class Factory(Base):
    __tablename__ = "factories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    code = Column(String(64), nullable=True)

    def __repr__(self):
        return f"<Factory(id={self.id}, code='{self.code}')>"


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)

    # Identity
    uuid = Column(String(36), nullable=True, unique=True)
    product_code = Column(String(32), nullable=True, unique=True, index=True)
    base_sku = Column(String(64), nullable=True)
    generated_sku = Column(String(64), nullable=True)
    barcode = Column(String(13), nullable=True, unique=True)
    factory_batch_code = Column(String(64), nullable=True, index=True)
    label_serial_code = Column(String(32), nullable=True, index=True)
    tag_serial_code = Column(String(32), nullable=True, index=True)
    hs_code = Column(String(32), nullable=True)
    color_code = Column(String(32), nullable=True)

    # Descriptive
    name = Column(String(255), nullable=False, index=True)
    slug = Column(String(255), nullable=True, index=True)
    short_description = Column(String(512), nullable=True)
    description = Column(Text, nullable=True)

    # Commercial
    selling_price = Column(Numeric(12, 2, asdecimal=False), nullable=True)
    compare_price = Column(Numeric(12, 2, asdecimal=False), nullable=True)
    currency = Column(String(8), nullable=True)
    inventory = Column(Integer, nullable=True, default=0)

    status = Column(String(16), nullable=True)
    country_of_origin = Column(String(8), nullable=True)
    size_system = Column(String(64), nullable=True)

    # Media ids and repeatable components
    images = Column(JSON, nullable=True)
    gallery = Column(JSON, nullable=True)
    product_variants = Column(JSON, nullable=True)
    seo = Column(JSON, nullable=True)
    alt_names_entries = Column(JSON, nullable=True)
    translations = Column(JSON, nullable=True)

    factory_id = Column(Integer, ForeignKey("factories.id"), nullable=True)
    factory = relationship("Factory")
    categories = relationship("Category", secondary=product_categories, order_by=product_categories.c.category_id)

    published_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', product_code='{self.product_code}')>"


class SequenceCounter(Base):
    """Last sequence number handed out for an exact code prefix."""

    __tablename__ = "sequence_counters"

    prefix = Column(String(64), primary_key=True)
    attribute = Column(String(64), primary_key=True)
    value = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<SequenceCounter(prefix='{self.prefix}', attribute='{self.attribute}', value={self.value})>"
