import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import inspect

from entityrepo.core.principal import principal_scope
from entityrepo.models import FetchGraphError, resolve_fetch_graph, resolve_named_query
from entityrepo.models import traceable
from entityrepo.tests.test_fixtures.entities import Customer, Order


class TestPersistentIdentity:

    def test_guid_generated_on_construction(self):
        """
        Behavior:
                - Construct an entity without a guid.

        Importance:
                - The guid is the identity; it must be known before the INSERT
                  so callers can reference the entity right away.
        """
        # Act
        customer = Customer(name="Ada", email="ada@example.com")

        # Assert: a valid uuid4 string
        assert uuid.UUID(customer.guid).version == 4

    def test_explicit_guid_is_kept(self):
        customer = Customer(guid="fixed-guid", name="Ada", email="ada@example.com")
        assert customer.guid == "fixed-guid"

    def test_equality_is_by_type_and_guid(self):
        """
        Behavior:
                - Same class + same guid compare equal whatever the other fields.
                - Different classes never compare equal, even with the same guid.
        """
        a = Customer(guid="g-1", name="A", email="a@example.com")
        b = Customer(guid="g-1", name="B", email="b@example.com")
        other = Order(guid="g-1", reference="R-1")

        assert a == b
        assert hash(a) == hash(b)
        assert a != other
        assert a != Customer(guid="g-2", name="A", email="a@example.com")
        assert len({a, b}) == 1

    def test_comparison_with_non_entity(self):
        customer = Customer(name="A", email="a@example.com")
        assert customer != "not an entity"
        assert customer == customer

    def test_repr_is_class_and_guid(self):
        customer = Customer(guid="g-42", name="A", email="a@example.com")
        assert repr(customer) == "Customer:g-42"


@pytest.mark.asyncio
class TestPersistedFlag:

    async def test_new_entity_is_not_persisted(self, make_customer):
        assert make_customer().persisted is False

    async def test_persisted_after_create(self, customer_repo, make_customer):
        """
        Behavior:
                - create() on an idle session commits its own transaction,
                  the INSERT runs and the flag flips.
        """
        customer = make_customer()

        await customer_repo.create(customer)

        assert customer.persisted is True
        assert customer.version == 1

    async def test_persisted_only_after_flush_inside_caller_transaction(
        self, db_session, customer_repo, make_customer
    ):
        """
        Behavior:
                - Inside a caller-owned transaction, create() without flush only
                  adds the entity; the flag flips once the INSERT is flushed.

        Importance:
                - The flag reports what storage has seen, not what the session holds.
        """
        customer = make_customer()

        async with db_session.begin():
            await customer_repo.create(customer)
            assert customer.persisted is False

            await db_session.flush()
            assert customer.persisted is True

    async def test_loaded_entity_is_persisted(self, session_factory, created_customer):
        # Arrange: read it back through a different session
        async with session_factory() as other:
            loaded = await other.get(Customer, created_customer.guid)

        # Assert
        assert loaded is not created_customer
        assert loaded == created_customer
        assert loaded.persisted is True


@pytest.mark.asyncio
class TestTraceableStamping:

    async def test_creation_stamps_all_audit_fields(self, customer_repo, make_customer, monkeypatch):
        """
        Behavior:
                - Creating a traceable entity sets creation and modification
                  fields to the same instant and the current principal.
        """
        # Arrange
        moment = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        monkeypatch.setattr(traceable, "_now", lambda: moment)
        customer = make_customer()

        # Act
        with principal_scope("alice"):
            await customer_repo.create(customer)

        # Assert
        assert customer.creation_date == moment
        assert customer.modification_date == moment
        assert customer.creation_user == "alice"
        assert customer.modification_user == "alice"

    async def test_creation_without_principal_leaves_users_empty(self, customer_repo, make_customer):
        customer = await customer_repo.create(make_customer())

        assert customer.creation_user is None
        assert customer.modification_user is None
        assert customer.creation_date is not None

    async def test_update_stamps_modification_only(self, customer_repo, make_customer, monkeypatch):
        """
        Behavior:
                - An update refreshes modification_date/user and leaves the
                  creation fields untouched.
        """
        # Arrange
        created_at = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        updated_at = created_at + timedelta(hours=3)
        monkeypatch.setattr(traceable, "_now", lambda: created_at)
        with principal_scope("alice"):
            customer = await customer_repo.create(make_customer())

        # Act
        monkeypatch.setattr(traceable, "_now", lambda: updated_at)
        customer.name = "Renamed"
        with principal_scope("bob"):
            customer = await customer_repo.update(customer, flush=True)

        # Assert
        assert customer.creation_date == created_at
        assert customer.creation_user == "alice"
        assert customer.modification_date == updated_at
        assert customer.modification_user == "bob"

    async def test_update_without_principal_keeps_last_modifier(
        self, customer_repo, make_customer, monkeypatch
    ):
        with principal_scope("alice"):
            customer = await customer_repo.create(make_customer())
        before = customer.modification_date

        later = datetime.now(timezone.utc) + timedelta(days=1)
        monkeypatch.setattr(traceable, "_now", lambda: later)
        customer.name = "Renamed"
        customer = await customer_repo.update(customer, flush=True)

        assert customer.modification_user == "alice"
        assert customer.modification_date == later
        assert customer.modification_date != before


class TestFetchGraphs:

    def test_resolves_declared_graph(self):
        options = resolve_fetch_graph(Order, "Order.load")
        assert options is not None
        assert len(options) == 1

    def test_unknown_graph_is_none(self):
        assert resolve_fetch_graph(Order, "Order.summary") is None
        assert resolve_fetch_graph(Customer, "Customer.load") is None

    def test_non_relationship_path_raises(self, monkeypatch):
        monkeypatch.setattr(Order, "__fetch_graphs__", {"Order.bad": ("reference",)})

        with pytest.raises(FetchGraphError) as exc_info:
            resolve_fetch_graph(Order, "Order.bad")

        assert "Order.reference" in str(exc_info.value)

    def test_named_query_lookup(self):
        assert resolve_named_query(Customer, "Customer.byEmail") == "email = :email"
        assert resolve_named_query(Customer, "Customer.unknown") is None
        assert resolve_named_query(Order, "anything") is None


def test_version_column_is_the_mapper_version_counter():
    mapper = inspect(Customer)
    assert mapper.version_id_col is Customer.__table__.c.version
