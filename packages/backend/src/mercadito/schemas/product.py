"""Pydantic schemas for products and catalog pages.

Learn: ProductCreate fills defaults for everything but title and price,
so a realtime client can add `{"title": "X", "price": 10}` and get a
complete record back. ProductUpdate has no defaults: only the fields
sent are written.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProductCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    code: Optional[str] = None
    price: float = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    category: str = ""
    status: bool = True
    thumbnails: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title must not be blank")
        return v.strip()


class ProductUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    code: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    category: Optional[str] = None
    status: Optional[bool] = None
    thumbnails: Optional[list[str]] = None

    # `id` and unknown keys are rejected rather than silently dropped
    model_config = ConfigDict(extra="forbid")


class ProductRead(BaseModel):
    id: str
    title: str
    description: str = ""
    code: Optional[str] = None
    price: float
    stock: int = 0
    category: str = ""
    status: bool = True
    thumbnails: list[str] = Field(default_factory=list)


class ProductFilter(BaseModel):
    category: Optional[str] = None
    available: Optional[bool] = None


class Pagination(BaseModel):
    limit: int = Field(10, ge=1, le=100)
    page: int = Field(1, ge=1)
    sort: Optional[Literal["asc", "desc"]] = None


class ProductPage(BaseModel):
    items: list[ProductRead]
    total: int
    total_pages: int
    page: int
    has_prev_page: bool
    has_next_page: bool
    prev_page: Optional[int] = None
    next_page: Optional[int] = None
