"""
Pydantic Schemas for Request/Response Validation

Field names are snake_case in Python and camelCase on the wire
(``nameKu``, ``sortOrder``, ``staffRating`` ...).

Author: Khalil Bannouri
Version: 1.0.0
"""

import re
from datetime import datetime
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema: camelCase aliases, ORM attribute loading."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class FeedbackCreate(CamelModel):
    """Public feedback form submission."""
    staff_rating: int = Field(..., ge=1, le=5, examples=[5])
    service_rating: int = Field(..., ge=1, le=5, examples=[4])
    hygiene_rating: int = Field(..., ge=1, le=5, examples=[3])
    satisfaction_emoji: Optional[str] = Field(None, max_length=16)
    phone_number: Optional[str] = Field(None, max_length=40)
    table_number: Optional[str] = Field(None, max_length=20)
    comment: Optional[str] = Field(None, max_length=2000)


class LoginRequest(BaseModel):
    pin: str

    @field_validator("pin")
    @classmethod
    def validate_pin(cls, v: str) -> str:
        if not re.fullmatch(r"\d{4}", v):
            raise ValueError("PIN must be 4 digits")
        return v


class SectionCreate(CamelModel):
    name_ku: str = Field(..., min_length=1, max_length=200)
    name_en: str = Field(..., min_length=1, max_length=200)
    name_ar: str = Field(..., min_length=1, max_length=200)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class SectionUpdate(CamelModel):
    name_ku: Optional[str] = Field(None, min_length=1, max_length=200)
    name_en: Optional[str] = Field(None, min_length=1, max_length=200)
    name_ar: Optional[str] = Field(None, min_length=1, max_length=200)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class CategoryCreate(CamelModel):
    section_id: str = Field(..., min_length=1)
    name_ku: str = Field(..., min_length=1, max_length=200)
    name_en: str = Field(..., min_length=1, max_length=200)
    name_ar: str = Field(..., min_length=1, max_length=200)
    image_media_id: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class CategoryUpdate(CamelModel):
    section_id: Optional[str] = Field(None, min_length=1)
    name_ku: Optional[str] = Field(None, min_length=1, max_length=200)
    name_en: Optional[str] = Field(None, min_length=1, max_length=200)
    name_ar: Optional[str] = Field(None, min_length=1, max_length=200)
    image_media_id: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class ItemCreate(CamelModel):
    category_id: str = Field(..., min_length=1)
    name_ku: str = Field(..., min_length=1, max_length=200)
    name_en: str = Field(..., min_length=1, max_length=200)
    name_ar: str = Field(..., min_length=1, max_length=200)
    description_ku: Optional[str] = None
    description_en: Optional[str] = None
    description_ar: Optional[str] = None
    price: float = Field(..., ge=0, examples=[12.5])
    image_media_id: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class ItemUpdate(CamelModel):
    category_id: Optional[str] = Field(None, min_length=1)
    name_ku: Optional[str] = Field(None, min_length=1, max_length=200)
    name_en: Optional[str] = Field(None, min_length=1, max_length=200)
    name_ar: Optional[str] = Field(None, min_length=1, max_length=200)
    description_ku: Optional[str] = None
    description_en: Optional[str] = None
    description_ar: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    image_media_id: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class ReorderEntry(CamelModel):
    """New position for one sibling; ``position`` is accepted for ``sortOrder``."""
    id: str = Field(..., min_length=1)
    sort_order: int = Field(
        ...,
        validation_alias=AliasChoices("sortOrder", "position", "sort_order"),
    )


class ReorderRequest(CamelModel):
    items: List[ReorderEntry]


class BrandingUpdate(CamelModel):
    brand_colors: dict[str, Any]


class SettingsUpdate(CamelModel):
    """Partial restaurant settings update; only supplied keys are applied."""
    name_ku: Optional[str] = None
    name_en: Optional[str] = None
    name_ar: Optional[str] = None
    google_maps_url: Optional[str] = None
    phone_number: Optional[str] = None
    welcome_overlay_color: Optional[str] = None
    welcome_overlay_opacity: Optional[float] = Field(None, ge=0, le=1)
    welcome_text_en: Optional[str] = None
    logo_media_id: Optional[str] = None
    welcome_background_media_id: Optional[str] = None


class ThemeUpdate(CamelModel):
    app_bg: str = Field(..., min_length=1, max_length=32)
    background_image_media_id: Optional[str] = None


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class MediaInfo(CamelModel):
    """Media metadata without the payload."""
    id: str
    mime_type: str
    size: int


class RestaurantOut(CamelModel):
    id: str
    slug: str
    name_ku: str
    name_en: str
    name_ar: str
    logo_media_id: Optional[str] = None
    welcome_background_media_id: Optional[str] = None
    welcome_overlay_color: str
    welcome_overlay_opacity: float
    welcome_text_en: Optional[str] = None
    google_maps_url: Optional[str] = None
    phone_number: Optional[str] = None
    brand_colors: Optional[dict[str, Any]] = None


class RestaurantDetail(RestaurantOut):
    logo: Optional[MediaInfo] = None
    welcome_background: Optional[MediaInfo] = None
    updated_at: Optional[datetime] = None


class SlugEntry(CamelModel):
    id: str
    name_en: str
    slug: str


class SlugListResponse(BaseModel):
    count: int
    restaurants: List[SlugEntry]


class BrandingResponse(CamelModel):
    brand_colors: Optional[dict[str, Any]] = None


class SettingsResponse(CamelModel):
    name_ku: str
    name_en: str
    name_ar: str
    google_maps_url: str
    phone_number: str
    welcome_overlay_color: str
    welcome_overlay_opacity: float
    welcome_text_en: str
    logo_media_id: Optional[str] = None
    welcome_background_media_id: Optional[str] = None


class ItemOut(CamelModel):
    id: str
    category_id: str
    name_ku: str
    name_en: str
    name_ar: str
    description_ku: Optional[str] = None
    description_en: Optional[str] = None
    description_ar: Optional[str] = None
    price: float
    image_media_id: Optional[str] = None
    sort_order: int
    is_active: bool


class CategoryOut(CamelModel):
    id: str
    section_id: str
    name_ku: str
    name_en: str
    name_ar: str
    image_media_id: Optional[str] = None
    sort_order: int
    is_active: bool


class SectionOut(CamelModel):
    id: str
    restaurant_id: str
    name_ku: str
    name_en: str
    name_ar: str
    sort_order: int
    is_active: bool


class CategoryTree(CategoryOut):
    items: List[ItemOut] = []


class SectionTree(SectionOut):
    categories: List[CategoryTree] = []


class ReorderedEntry(CamelModel):
    id: str
    sort_order: int
    name_en: str
    section_id: Optional[str] = None
    category_id: Optional[str] = None


class ReorderResponse(BaseModel):
    success: bool = True
    updated: List[ReorderedEntry]


class FeedbackCreateResponse(BaseModel):
    id: str
    success: bool = True


class FeedbackOut(CamelModel):
    id: str
    staff_rating: int
    service_rating: int
    hygiene_rating: int
    satisfaction_emoji: Optional[str] = None
    phone_number: Optional[str] = None
    table_number: Optional[str] = None
    comment: Optional[str] = None
    created_at: Optional[datetime] = None


class FeedbackListResponse(BaseModel):
    feedbacks: List[FeedbackOut]


class ThemeOut(CamelModel):
    id: str
    app_bg: str
    background_image_media_id: Optional[str] = None
    background_image: Optional[MediaInfo] = None


class ThemeResponse(BaseModel):
    theme: ThemeOut


class UiSettingsOut(CamelModel):
    section_title_size: int
    category_title_size: int
    item_name_size: int
    item_description_size: int
    item_price_size: int
    header_logo_size: int


class SessionStatus(BaseModel):
    authenticated: bool


class SuccessResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    timestamp: datetime
