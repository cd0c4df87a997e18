from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime

from catalog.utils.identifiers import complete_ean13, mask_code


# Product Schemas
class ProductWrite(BaseModel):
    """
    Product write payload.

    Known fields get the admin input masks applied; anything else (relations,
    components, legacy fields) passes through untouched to code generation.
    """

    model_config = ConfigDict(extra="allow")

    name: Optional[str] = Field(None, max_length=255, description="Product name")
    slug: Optional[str] = Field(None, max_length=255)
    product_code: Optional[str] = Field(None, description="CAT-YY-NNNN; generated when absent")
    base_sku: Optional[str] = None
    generated_sku: Optional[str] = None
    barcode: Optional[str] = Field(None, description="EAN-13; 12 digits get their check digit appended")

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v):
        # Omitting the name is allowed; sending null is not
        if v is None:
            raise ValueError("name cannot be null")
        return v

    @field_validator("product_code", "base_sku", "generated_sku")
    @classmethod
    def mask_codes(cls, v):
        if v is None:
            return v
        return mask_code(v) or None

    @field_validator("barcode", mode="before")
    @classmethod
    def mask_barcode(cls, v):
        if v is None:
            return v
        return complete_ean13(v) or None


class ProductResponse(BaseModel):
    id: int
    uuid: Optional[str] = None
    name: str
    slug: Optional[str] = None
    product_code: Optional[str] = None
    base_sku: Optional[str] = None
    generated_sku: Optional[str] = None
    barcode: Optional[str] = None
    factory_batch_code: Optional[str] = None
    label_serial_code: Optional[str] = None
    tag_serial_code: Optional[str] = None
    hs_code: Optional[str] = None
    color_code: Optional[str] = None
    short_description: Optional[str] = None
    description: Optional[str] = None
    selling_price: Optional[float] = None
    compare_price: Optional[float] = None
    currency: Optional[str] = None
    inventory: Optional[int] = None
    status: Optional[str] = None
    country_of_origin: Optional[str] = None
    size_system: Optional[str] = None
    categories: List[int] = []
    factory: Optional[int] = None
    images: Optional[List[Any]] = None
    gallery: Optional[List[Any]] = None
    product_variants: Optional[List[Dict[str, Any]]] = None
    seo: Optional[List[Dict[str, Any]]] = None
    alt_names_entries: Optional[List[Dict[str, Any]]] = None
    translations: Optional[List[Dict[str, Any]]] = None
    publishedAt: Optional[datetime] = None


class ProductListResponse(BaseModel):
    items: List[ProductResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class UniqueCheckResponse(BaseModel):
    field: str
    value: str
    unique: bool


# Maintenance task schemas
class TaskProgressResponse(BaseModel):
    task_id: str
    job: Optional[str] = None
    status: str  # pending, processing, completed, failed
    progress: float = Field(0.0, ge=0.0, le=100.0, description="Progress percentage")
    result: Dict[str, int] = {}
    errors: List[str] = []
    message: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class TaskEnqueuedResponse(BaseModel):
    task_id: str
    job: str
    message: str
