"""
Shared builders for tests.
"""
from decimal import Decimal

from shop.domain.order import ShippingAddress
from shop.infra.repositories import CustomerRepository, ProductRepository


def make_address(**overrides) -> ShippingAddress:
    data = {
        "full_name": "Ada Lovelace",
        "address": "12 Kennel Lane",
        "city": "London",
        "country": "UK",
        "phone_number": "+44 20 7946 0000",
        "postal_code": "N1 9GU",
    }
    data.update(overrides)
    return ShippingAddress(**data)


def address_payload(**overrides) -> dict:
    data = {
        "fullName": "Ada Lovelace",
        "address": "12 Kennel Lane",
        "city": "London",
        "postalCode": "N1 9GU",
        "country": "UK",
        "phoneNumber": "+44 20 7946 0000",
    }
    data.update(overrides)
    return data


def make_customer(name="Test Customer", email="customer@example.com", role="user"):
    return CustomerRepository().create(name=name, email=email, role=role)


def make_product(name="Dog Food", price="20.00", stock=5, **fields):
    return ProductRepository().create(name=name, price=Decimal(price), count_in_stock=stock, **fields)
