from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Text, JSON, Table, \
    Enum as SQLEnum

from enums.product_status import ProductStatus
from enums.product_type import ProductType
from models.base import Base, generate_uuid, CamelModel
from models.category import CategoryRefView
from models.productVariant import VariantView
from utils.time_utils import utcnow

# Many-to-many link between products and categories
product_categories = Table(
    'product_categories',
    Base.metadata,
    Column('product_id', String(36), ForeignKey('products.id', ondelete="CASCADE"), primary_key=True),
    Column('category_id', String(36), ForeignKey('categories.id', ondelete="CASCADE"), primary_key=True),
)


class Product(Base):
    __tablename__ = 'products'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    type = Column(SQLEnum(ProductType), nullable=False)
    status = Column(SQLEnum(ProductStatus), nullable=False, default=ProductStatus.DRAFT)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    currency = Column(String(3), nullable=False, default="NGN")
    base_price_kobo = Column(Integer, nullable=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    # Free-form attributes (fabric material, width, care notes...)
    attributes = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class ProductImage(Base):
    __tablename__ = 'product_images'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    product_id = Column(String(36), ForeignKey('products.id', ondelete="CASCADE"), nullable=False, index=True)
    url = Column(String(1024), nullable=False)
    alt_text = Column(String(255), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_primary = Column(Boolean, nullable=False, default=False)


class ProductDTO(BaseModel):
    id: str | None = None
    type: ProductType | None = None
    status: ProductStatus | None = None
    title: str | None = None
    slug: str | None = None
    description: str | None = None
    currency: str | None = None
    base_price_kobo: int | None = None
    is_featured: bool | None = None
    attributes: dict | None = None
    created_at: datetime | None = None


class ProductImageDTO(BaseModel):
    id: str | None = None
    product_id: str | None = None
    url: str | None = None
    alt_text: str | None = None
    sort_order: int | None = None
    is_primary: bool | None = None


class ProductImageView(CamelModel):
    url: str
    alt_text: str | None = None
    is_primary: bool = False


class ProductListView(CamelModel):
    id: str
    title: str
    slug: str
    type: ProductType
    currency: str
    base_price_kobo: int | None = None
    price_from_kobo: int | None = None      # Cheapest active variant
    is_featured: bool = False
    image: str | None = None
    categories: list[CategoryRefView] = []
    in_stock: bool


class ProductDetailView(CamelModel):
    id: str
    title: str
    slug: str
    type: ProductType
    description: str | None = None
    currency: str
    base_price_kobo: int | None = None
    is_featured: bool = False
    attributes: dict | None = None
    images: list[ProductImageView] = []
    categories: list[CategoryRefView] = []
    variants: list[VariantView] = []
    in_stock: bool
