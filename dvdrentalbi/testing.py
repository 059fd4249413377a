"""
Test support: in-memory rental databases and a small builder for rental data.

Test modules configure ``dvdrentalbi.test_settings`` and call
``setup_rental_databases`` / ``teardown_rental_databases`` from their
``setUpModule`` / ``tearDownModule``.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

from django.test.utils import (
    setup_databases, setup_test_environment, teardown_databases, teardown_test_environment
)

from dvdrentalbi.models import (
    Actor, Address, Category, City, Country, Customer, Film, FilmActor, FilmCategory,
    Inventory, Language, Payment, Rental, Staff, Store
)

STAMP = datetime(2006, 2, 15, 9, 0)

_old_config = None


def setup_rental_databases():
    global _old_config
    setup_test_environment()
    _old_config = setup_databases(verbosity=0, interactive=False, serialized_aliases=[])


def teardown_rental_databases():
    global _old_config
    teardown_databases(_old_config, verbosity=0)
    teardown_test_environment()
    _old_config = None


class RentalDataBuilder:
    """Creates a store with one staff member, then films, customers and rentals on demand."""

    def __init__(self, city='Lethbridge', country='Canada'):
        self.country = Country.objects.create(country=country, last_update=STAMP)
        self.city = City.objects.create(city=city, country=self.country, last_update=STAMP)
        self.language = Language.objects.create(name='English', last_update=STAMP)
        self.store = self.add_store()
        self.staff = self.add_staff(self.store)
        self._categories = {}
        self._actors = {}

    def add_address(self, address='47 MySakila Drive'):
        return Address.objects.create(
            address=address, district='Alberta', city=self.city, phone='', last_update=STAMP
        )

    def add_store(self, address='47 MySakila Drive'):
        return Store.objects.create(
            manager_staff_id=1, address=self.add_address(address), last_update=STAMP
        )

    def add_staff(self, store, username='mike'):
        return Staff.objects.create(
            first_name='Mike', last_name='Hillyer', address=store.address, store=store,
            username=username, last_update=STAMP,
        )

    def category(self, name):
        if name not in self._categories:
            self._categories[name] = Category.objects.create(name=name, last_update=STAMP)
        return self._categories[name]

    def actor(self, first_name, last_name):
        key = (first_name, last_name)
        if key not in self._actors:
            self._actors[key] = Actor.objects.create(
                first_name=first_name, last_name=last_name, last_update=STAMP
            )
        return self._actors[key]

    def add_film(self, title, category='Action', copies=1, rental_duration=3,
                 rental_rate=Decimal('2.99'), rating='PG', store=None, actors=()):
        film = Film.objects.create(
            title=title, language=self.language, rental_duration=rental_duration,
            rental_rate=rental_rate, replacement_cost=Decimal('19.99'), rating=rating,
            last_update=STAMP,
        )
        if category is not None:
            self.add_category(film, category)
        for first_name, last_name in actors:
            FilmActor.objects.create(actor=self.actor(first_name, last_name), film=film, last_update=STAMP)
        for _ in range(copies):
            self.add_copy(film, store)
        return film

    def add_category(self, film, name):
        return FilmCategory.objects.create(film=film, category=self.category(name), last_update=STAMP)

    def add_copy(self, film, store=None):
        return Inventory.objects.create(film=film, store=store or self.store, last_update=STAMP)

    def add_customer(self, first_name='Mary', last_name='Smith', store=None,
                     create_date=date(2006, 2, 14)):
        store = store or self.store
        return Customer.objects.create(
            store=store, first_name=first_name, last_name=last_name,
            address=store.address, create_date=create_date, last_update=STAMP, active=1,
        )

    def rent(self, customer, copy, rental_date, return_date=None, amount=None, paid_at=None):
        """Rent a copy; pass ``amount`` to attach a payment, dated ``paid_at`` or the rental date."""
        if isinstance(copy, Film):
            copy = copy.inventory_set.order_by('inventory_id').first()
        rental = Rental.objects.create(
            rental_date=rental_date, inventory=copy, customer=customer,
            return_date=return_date, staff=self.staff, last_update=STAMP,
        )
        if amount is not None:
            self.pay(rental, amount, paid_at or rental_date)
        return rental

    def pay(self, rental, amount, paid_at):
        return Payment.objects.create(
            customer=rental.customer, staff=self.staff, rental=rental,
            amount=Decimal(str(amount)), payment_date=paid_at,
        )

    def rent_many(self, customer, film, count, start, amount=None, gap=timedelta(hours=1)):
        copies = list(film.inventory_set.order_by('inventory_id'))
        return [
            self.rent(customer, copies[index % len(copies)], start + gap * index, amount=amount)
            for index in range(count)
        ]
