from pydantic import BaseModel
from sqlalchemy import Column, String, Integer, Boolean

from models.base import Base, generate_uuid, CamelModel


class Category(Base):
    __tablename__ = 'categories'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)


class CategoryDTO(BaseModel):
    id: str | None = None
    name: str | None = None
    slug: str | None = None
    sort_order: int | None = None
    is_active: bool | None = None


class CategoryView(CamelModel):
    id: str
    name: str
    slug: str
    sort_order: int
    product_count: int = 0


class CategoryRefView(CamelModel):
    name: str
    slug: str
