import uuid
from decimal import Decimal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import Integer
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

Base = declarative_base()


def generate_uuid() -> str:
    return str(uuid.uuid4())


class FixedDecimal(TypeDecorator):
    """
    Fixed-point decimal with two fractional digits, stored as integer hundredths.

    Quantities (cart lines, inventory on-hand and reserved) use this type so that
    SQL-side arithmetic such as ``reserved + :qty <= quantity`` is exact on every
    backend, SQLite included.
    """
    impl = Integer
    cache_ok = True

    SCALE = 100

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        scaled = Decimal(str(value)) * self.SCALE
        if scaled != scaled.to_integral_value():
            raise ValueError(f"Quantity {value} has more than two decimal places")
        return int(scaled)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value) / self.SCALE


class CamelModel(BaseModel):
    """Base for API views: snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)
