"""ORM Models for SynProd — SQLAlchemy 2.0"""
import enum
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import (
    String, Text, Integer, Float, DateTime, Enum as SAEnum,
    ForeignKey, Index,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from synprod.db import Base
from synprod.services.catalogs import ProductType


def gen_uuid():
    return str(uuid.uuid4())


class Role(str, enum.Enum):
    PRODUCTION = "PRODUCTION"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


class UserStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


# ── AUTH ──────────────────────────────────────────────────────────────────────
class User(Base):
    __tablename__ = "users"
    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=gen_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    hashed_password: Mapped[Optional[str]] = mapped_column(Text)
    first_name: Mapped[Optional[str]] = mapped_column(String(100))
    last_name: Mapped[Optional[str]] = mapped_column(String(100))
    role: Mapped[Role] = mapped_column(SAEnum(Role, name="user_role"), nullable=False, default=Role.PRODUCTION)
    status: Mapped[UserStatus] = mapped_column(
        SAEnum(UserStatus, name="user_status"), nullable=False, default=UserStatus.PENDING
    )
    invite_token: Mapped[Optional[str]] = mapped_column(String(64), unique=True)
    invite_token_expiry: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    reset_token: Mapped[Optional[str]] = mapped_column(String(64), unique=True)
    reset_token_expiry: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    products: Mapped[list["Product"]] = relationship("Product", back_populates="created_by")

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE


# ── PRODUCTS / RECIPES ────────────────────────────────────────────────────────
class Product(Base):
    __tablename__ = "products"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500))
    product_type: Mapped[ProductType] = mapped_column(
        SAEnum(ProductType, name="product_type"), nullable=False
    )
    created_by_id: Mapped[Optional[str]] = mapped_column(UUID(as_uuid=False), ForeignKey("users.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    created_by: Mapped[Optional["User"]] = relationship("User", back_populates="products", lazy="selectin")
    compositions: Mapped[list["ProductComposition"]] = relationship(
        "ProductComposition",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductComposition.sort_order",
        lazy="selectin",
    )
    ingredients: Mapped[list["ProductIngredient"]] = relationship(
        "ProductIngredient",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductIngredient.sort_order",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_product_name", "name"),
        Index("idx_product_type", "product_type"),
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def created_by_name(self) -> Optional[str]:
        if self.created_by is None:
            return None
        return self.created_by.full_name or self.created_by.email


class ProductComposition(Base):
    __tablename__ = "product_compositions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    component_name: Mapped[str] = mapped_column(String(100), nullable=False)
    percentage: Mapped[float] = mapped_column(Float, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(String(255))
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    product: Mapped["Product"] = relationship("Product", back_populates="compositions")


class ProductIngredient(Base):
    __tablename__ = "product_ingredients"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    ingredient_name: Mapped[str] = mapped_column(String(100), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(20), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(String(255))
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    product: Mapped["Product"] = relationship("Product", back_populates="ingredients")

    __table_args__ = (
        Index("idx_ingredient_product", "product_id"),
        Index("idx_ingredient_name", "ingredient_name"),
        Index("idx_ingredient_sort", "product_id", "sort_order"),
    )
