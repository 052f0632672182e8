"""Fixtures for repository tests."""

import pytest
from faker import Faker
from sqlalchemy.ext.asyncio import AsyncSession

from entityrepo.repositories import EntityRepository

from .entities import Customer, CustomerRepository, Order, OrderLine

# NOTE: All fixtures in this file depend on the `db_session` fixture defined in conftest.py


@pytest.fixture
def fake() -> Faker:
    faker = Faker()
    faker.seed_instance(1234)
    return faker


@pytest.fixture
def customer_repo(db_session: AsyncSession) -> CustomerRepository:
    """
    A CustomerRepository bound to the test session.

    Customer is traceable and has a unique email, so this is the repository
    most tests use.
    """
    return CustomerRepository(db_session)


@pytest.fixture
def order_repo(db_session: AsyncSession) -> EntityRepository[Order]:
    """
    A plain EntityRepository for Order, which declares the "Order.load" fetch graph.
    """
    return EntityRepository(Order, db_session)


@pytest.fixture
def make_customer(fake: Faker):
    """
    Factory for transient (not yet persisted) customers.

    Usage:
        customer = make_customer(rank=3)
    """
    def _make(**overrides) -> Customer:
        data = {
            "name": fake.name(),
            "email": fake.unique.email(),
            "rank": 0,
        }
        data.update(overrides)
        return Customer(**data)

    return _make


@pytest.fixture
def make_order(fake: Faker):
    def _make(lines: int = 2, **overrides) -> Order:
        data = {"reference": fake.bothify("ORD-####")}
        data.update(overrides)
        order = Order(**data)
        order.lines = [
            OrderLine(product=fake.word(), quantity=idx + 1) for idx in range(lines)
        ]
        return order

    return _make


@pytest.fixture
async def created_customer(customer_repo: CustomerRepository, make_customer) -> Customer:
    """A single customer, created and committed through the repository."""
    return await customer_repo.create(make_customer())


@pytest.fixture
async def multiple_customers(customer_repo: CustomerRepository, make_customer) -> list[Customer]:
    """
    Ten committed customers with rank 0..9, so tests can page in a stable order.
    """
    customers = [make_customer(rank=idx) for idx in range(10)]
    return await customer_repo.create_many(customers)
