from sqlalchemy import Boolean, Column, Float, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship
from domus.models.base import BaseModel


class Property(BaseModel):
    __tablename__ = "properties"

    # Basic Info
    name = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    property_type = Column(String(50), nullable=True)
    registry_number = Column(String(100), nullable=True)
    functional_unit = Column(String(50), nullable=True)
    owner_intention = Column(String(50), nullable=True)
    commercial_status = Column(String(50), nullable=True)
    property_condition = Column(String(50), nullable=True)
    price = Column(Float, nullable=True)

    # Surfaces and rooms
    covered_meters = Column(Float, nullable=True)
    uncovered_meters = Column(Float, nullable=True)
    rooms = Column(Integer, nullable=True)
    bathrooms = Column(Integer, nullable=True)
    year_of_construction = Column(Integer, nullable=True)

    # Utilities
    electricity_identifier = Column(String(100), nullable=True)
    gas_identifier = Column(String(100), nullable=True)
    abl_identifier = Column(String(100), nullable=True)

    # Building administration
    administration_name = Column(String(150), nullable=True)
    administration_phone = Column(String(30), nullable=True)
    administration_email = Column(String(255), nullable=True)
    administration_address = Column(String(255), nullable=True)

    # Owner contact
    owner_name = Column(String(150), nullable=True)
    owner_phone = Column(String(30), nullable=True)
    owner_cbu = Column(String(30), nullable=True)
    owner_alias = Column(String(50), nullable=True)

    # Amenities
    has_expenses = Column(Boolean, default=False, nullable=False)
    has_extraordinary_expenses = Column(Boolean, default=False, nullable=False)
    has_kitchen = Column(Boolean, default=False, nullable=False)
    has_patio = Column(Boolean, default=False, nullable=False)
    has_barbecue = Column(Boolean, default=False, nullable=False)
    has_terrace = Column(Boolean, default=False, nullable=False)
    has_pool = Column(Boolean, default=False, nullable=False)
    has_garden = Column(Boolean, default=False, nullable=False)
    has_balcony = Column(Boolean, default=False, nullable=False)
    has_furnished = Column(Boolean, default=False, nullable=False)
    has_zoom = Column(Boolean, default=False, nullable=False)
    has_parking = Column(Boolean, default=False, nullable=False)
    services_comment = Column(Text, nullable=True)

    # Media
    thumbnail = Column(String(500), nullable=True)
    images = Column(JSON, default=list)
    documents = Column(JSON, default=list)

    address_id = Column(Integer, ForeignKey("addresses.id"), unique=True, nullable=False)
    address = relationship("Address", lazy="joined")
