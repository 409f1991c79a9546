from sqlalchemy import Column, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from domus.models.base import Base, TimestampMixin


class Country(Base):
    __tablename__ = "countries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    iso_code = Column(String(2), unique=True, nullable=False)
    phone_prefix = Column(String(10), nullable=True)
    currency_code = Column(String(3), nullable=True)
    currency_symbol = Column(String(5), nullable=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    default_zoom = Column(Integer, default=5, nullable=False)


class Province(Base):
    __tablename__ = "provinces"

    # INDEC code, e.g. "02"
    id = Column(String(10), primary_key=True)
    name = Column(String(100), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    default_zoom = Column(Integer, default=10, nullable=False)

    country_id = Column(Integer, ForeignKey("countries.id"), nullable=False, index=True)
    country = relationship("Country", lazy="joined")


class City(Base):
    __tablename__ = "cities"

    id = Column(String(50), primary_key=True)
    name = Column(String(100), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    province_id = Column(String(10), ForeignKey("provinces.id"), nullable=False, index=True)
    province = relationship("Province", lazy="joined")


class PostalCode(Base):
    __tablename__ = "postal_codes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(10), nullable=False, index=True)

    city_id = Column(String(50), ForeignKey("cities.id"), nullable=False, index=True)
    city = relationship("City")


class Address(TimestampMixin, Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    street = Column(String(255), nullable=False)
    number = Column(String(50), nullable=False)
    apartment = Column(String(50), nullable=True)
    neighborhood = Column(String(100), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    nomenclator = Column(String(255), nullable=True)

    city_id = Column(String(50), ForeignKey("cities.id"), nullable=False, index=True)
    city = relationship("City", lazy="joined")

    postal_code_id = Column(Integer, ForeignKey("postal_codes.id"), nullable=False, index=True)
    postal_code = relationship("PostalCode", lazy="joined")
