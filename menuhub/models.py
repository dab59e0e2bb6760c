"""
SQLAlchemy Database Models

Menu content is stored in three languages (Kurdish, English, Arabic):
- Restaurant profile with branding and welcome-screen settings
- Section → Category → Item containment tree
- Customer feedback
- Binary media (logos, backgrounds, item photos)
- Theme and UI settings singletons

Author: Khalil Bannouri
Version: 1.0.0
"""

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    LargeBinary,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from menuhub.database import Base

THEME_ID = "theme-1"
UI_SETTINGS_ID = "ui-settings-1"


def generate_id() -> str:
    return uuid.uuid4().hex


class Media(Base):
    """
    Uploaded binary blob.

    Media rows are immutable once created; they are referenced by id
    from restaurants, categories, items and the theme.
    """
    __tablename__ = "media"

    id = Column(String(32), primary_key=True, default=generate_id)
    mime_type = Column(String(100), nullable=False)
    bytes = Column(LargeBinary, nullable=False)
    size = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Media {self.id} - {self.mime_type} - {self.size}B>"


class Restaurant(Base):
    """
    Restaurant profile.

    One row per deployment in practice; looked up by slug from public
    URLs and as "the first row" by admin endpoints.
    """
    __tablename__ = "restaurants"

    id = Column(String(32), primary_key=True, default=generate_id)
    slug = Column(String(120), unique=True, nullable=False, index=True)

    # =========================================================================
    # NAMES
    # =========================================================================
    name_ku = Column(String(200), nullable=False)
    name_en = Column(String(200), nullable=False)
    name_ar = Column(String(200), nullable=False)

    # =========================================================================
    # BRANDING
    # =========================================================================
    brand_colors = Column(JSON, nullable=True)
    logo_media_id = Column(String(32), ForeignKey("media.id", ondelete="SET NULL"), nullable=True)

    # =========================================================================
    # WELCOME SCREEN
    # =========================================================================
    welcome_background_media_id = Column(
        String(32), ForeignKey("media.id", ondelete="SET NULL"), nullable=True
    )
    welcome_overlay_color = Column(String(32), nullable=False, default="#000000")
    welcome_overlay_opacity = Column(Float, nullable=False, default=0.5)
    welcome_text_en = Column(Text, nullable=True)

    # =========================================================================
    # CONTACT
    # =========================================================================
    google_maps_url = Column(String(500), nullable=True)
    phone_number = Column(String(40), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    logo = relationship("Media", foreign_keys=[logo_media_id])
    welcome_background = relationship("Media", foreign_keys=[welcome_background_media_id])

    def __repr__(self):
        return f"<Restaurant {self.slug} - {self.name_en}>"


class Section(Base):
    """Top-level menu grouping (e.g. Menu, Shisha, Drinks)."""
    __tablename__ = "sections"

    id = Column(String(32), primary_key=True, default=generate_id)
    restaurant_id = Column(
        String(32), ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name_ku = Column(String(200), nullable=False)
    name_en = Column(String(200), nullable=False)
    name_ar = Column(String(200), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    categories = relationship(
        "Category",
        back_populates="section",
        cascade="all, delete-orphan",
        order_by="Category.sort_order",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Section {self.name_en} #{self.sort_order}>"


class Category(Base):
    """Grouping of items inside a section."""
    __tablename__ = "categories"

    id = Column(String(32), primary_key=True, default=generate_id)
    section_id = Column(
        String(32), ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name_ku = Column(String(200), nullable=False)
    name_en = Column(String(200), nullable=False)
    name_ar = Column(String(200), nullable=False)
    image_media_id = Column(String(32), ForeignKey("media.id", ondelete="SET NULL"), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    section = relationship("Section", back_populates="categories")
    items = relationship(
        "Item",
        back_populates="category",
        cascade="all, delete-orphan",
        order_by="Item.sort_order",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Category {self.name_en} #{self.sort_order}>"


class Item(Base):
    """A dish or drink with localized name/description and a price."""
    __tablename__ = "items"

    id = Column(String(32), primary_key=True, default=generate_id)
    category_id = Column(
        String(32), ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name_ku = Column(String(200), nullable=False)
    name_en = Column(String(200), nullable=False)
    name_ar = Column(String(200), nullable=False)
    description_ku = Column(Text, nullable=True)
    description_en = Column(Text, nullable=True)
    description_ar = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    image_media_id = Column(String(32), ForeignKey("media.id", ondelete="SET NULL"), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    category = relationship("Category", back_populates="items")

    def __repr__(self):
        return f"<Item {self.name_en} - {self.price}>"


class Feedback(Base):
    """
    Customer feedback submitted from the public form.

    Written once, read by admins; never updated.
    """
    __tablename__ = "feedback"

    id = Column(String(32), primary_key=True, default=generate_id)

    # Ratings (1-5)
    staff_rating = Column(Integer, nullable=False)
    service_rating = Column(Integer, nullable=False)
    hygiene_rating = Column(Integer, nullable=False)

    satisfaction_emoji = Column(String(16), nullable=True)
    phone_number = Column(String(40), nullable=True)
    table_number = Column(String(20), nullable=True)
    comment = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    def __repr__(self):
        return f"<Feedback {self.id} - {self.staff_rating}/{self.service_rating}/{self.hygiene_rating}>"


class Theme(Base):
    """App-wide theme singleton (id THEME_ID)."""
    __tablename__ = "themes"

    id = Column(String(32), primary_key=True, default=THEME_ID)
    app_bg = Column(String(32), nullable=False)
    background_image_media_id = Column(
        String(32), ForeignKey("media.id", ondelete="SET NULL"), nullable=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    background_image = relationship("Media", foreign_keys=[background_image_media_id])


class UiSettings(Base):
    """Font-size style display parameters (singleton, id UI_SETTINGS_ID)."""
    __tablename__ = "ui_settings"

    id = Column(String(32), primary_key=True, default=UI_SETTINGS_ID)
    section_title_size = Column(Integer, nullable=False, default=22)
    category_title_size = Column(Integer, nullable=False, default=18)
    item_name_size = Column(Integer, nullable=False, default=16)
    item_description_size = Column(Integer, nullable=False, default=14)
    item_price_size = Column(Integer, nullable=False, default=16)
    header_logo_size = Column(Integer, nullable=False, default=32)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class AdminUser(Base):
    """Admin account; authenticates with a 4-digit PIN."""
    __tablename__ = "admin_users"

    id = Column(String(32), primary_key=True, default=generate_id)
    pin_hash = Column(String(200), nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
