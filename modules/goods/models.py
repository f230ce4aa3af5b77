from sqlalchemy import Boolean, Column, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from core.models import Base, TimestampMixin


class Good(Base, TimestampMixin):
    __tablename__ = "goods"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(32), nullable=False, index=True)
    cost = Column(Float, nullable=False)
    process_time = Column(Float, nullable=False)
    archived = Column(Boolean, nullable=False, default=False)
    # Only set for raw goods
    vendor = Column(String(255), nullable=True)
    # Only set for finished goods
    price = Column(Float, nullable=True)

    properties = relationship(
        "GoodProperty",
        cascade="all, delete-orphan",
        back_populates="good",
        order_by="GoodProperty.position",
    )
    components = relationship(
        "GoodComponent",
        cascade="all, delete-orphan",
        back_populates="good",
        order_by="GoodComponent.position",
    )


class GoodProperty(Base, TimestampMixin):
    __tablename__ = "good_properties"

    id = Column(Integer, primary_key=True, index=True)
    good_id = Column(Integer, ForeignKey("goods.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(255), nullable=False)
    value = Column(String(1024), nullable=False, default="")

    good = relationship("Good", back_populates="properties")


class GoodComponent(Base, TimestampMixin):
    __tablename__ = "good_components"

    id = Column(Integer, primary_key=True, index=True)
    good_id = Column(Integer, ForeignKey("goods.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    # Weak reference: checked at validation time, no foreign key
    component_id = Column(Integer, nullable=False, index=True)
    quantity = Column(Float, nullable=False)

    good = relationship("Good", back_populates="components")
