from django.conf import settings
from django.db import models


# ===================================
# DVD RENTAL MODELS (read-only)
# ===================================
#
# Tables are owned by the rental database. Test settings flip
# DVDRENTAL_MANAGED_SCHEMA so the same models can be synced into SQLite.

MANAGED_SCHEMA = getattr(settings, 'DVDRENTAL_MANAGED_SCHEMA', False)


class Country(models.Model):
    country_id = models.AutoField(primary_key=True)
    country = models.CharField(max_length=50)
    last_update = models.DateTimeField()

    class Meta:
        managed = MANAGED_SCHEMA
        db_table = 'country'


class City(models.Model):
    city_id = models.AutoField(primary_key=True)
    city = models.CharField(max_length=50)
    country = models.ForeignKey(Country, on_delete=models.DO_NOTHING, db_column='country_id')
    last_update = models.DateTimeField()

    class Meta:
        managed = MANAGED_SCHEMA
        db_table = 'city'


class Address(models.Model):
    address_id = models.AutoField(primary_key=True)
    address = models.CharField(max_length=50)
    address2 = models.CharField(max_length=50, null=True, blank=True)
    district = models.CharField(max_length=20)
    city = models.ForeignKey(City, on_delete=models.DO_NOTHING, db_column='city_id')
    postal_code = models.CharField(max_length=10, null=True, blank=True)
    phone = models.CharField(max_length=20)
    last_update = models.DateTimeField()

    class Meta:
        managed = MANAGED_SCHEMA
        db_table = 'address'


class Language(models.Model):
    language_id = models.AutoField(primary_key=True)
    name = models.CharField(max_length=20)
    last_update = models.DateTimeField()

    class Meta:
        managed = MANAGED_SCHEMA
        db_table = 'language'


class Film(models.Model):
    film_id = models.AutoField(primary_key=True)
    title = models.CharField(max_length=255)
    description = models.TextField(null=True, blank=True)
    release_year = models.IntegerField(null=True, blank=True)
    language = models.ForeignKey(Language, on_delete=models.DO_NOTHING, db_column='language_id', related_name='films')
    rental_duration = models.SmallIntegerField()
    rental_rate = models.DecimalField(max_digits=4, decimal_places=2)
    length = models.SmallIntegerField(null=True, blank=True)
    replacement_cost = models.DecimalField(max_digits=5, decimal_places=2)
    rating = models.CharField(max_length=10, null=True, blank=True)
    last_update = models.DateTimeField()

    class Meta:
        managed = MANAGED_SCHEMA
        db_table = 'film'


class Actor(models.Model):
    actor_id = models.AutoField(primary_key=True)
    first_name = models.CharField(max_length=45)
    last_name = models.CharField(max_length=45)
    last_update = models.DateTimeField()

    class Meta:
        managed = MANAGED_SCHEMA
        db_table = 'actor'


class Category(models.Model):
    category_id = models.AutoField(primary_key=True)
    name = models.CharField(max_length=25)
    last_update = models.DateTimeField()

    class Meta:
        managed = MANAGED_SCHEMA
        db_table = 'category'


class FilmActor(models.Model):
    pk = models.CompositePrimaryKey('actor_id', 'film_id')
    actor = models.ForeignKey(Actor, on_delete=models.DO_NOTHING, db_column='actor_id')
    film = models.ForeignKey(Film, on_delete=models.DO_NOTHING, db_column='film_id')
    last_update = models.DateTimeField()

    class Meta:
        managed = MANAGED_SCHEMA
        db_table = 'film_actor'


class FilmCategory(models.Model):
    pk = models.CompositePrimaryKey('film_id', 'category_id')
    film = models.ForeignKey(Film, on_delete=models.DO_NOTHING, db_column='film_id')
    category = models.ForeignKey(Category, on_delete=models.DO_NOTHING, db_column='category_id')
    last_update = models.DateTimeField()

    class Meta:
        managed = MANAGED_SCHEMA
        db_table = 'film_category'


class Store(models.Model):
    store_id = models.AutoField(primary_key=True)
    manager_staff_id = models.IntegerField()
    address = models.ForeignKey(Address, on_delete=models.DO_NOTHING, db_column='address_id')
    last_update = models.DateTimeField()

    class Meta:
        managed = MANAGED_SCHEMA
        db_table = 'store'

    @property
    def location(self):
        city = self.address.city
        return f"{self.address.address}, {city.city}, {city.country.country}"


class Staff(models.Model):
    staff_id = models.AutoField(primary_key=True)
    first_name = models.CharField(max_length=45)
    last_name = models.CharField(max_length=45)
    address = models.ForeignKey(Address, on_delete=models.DO_NOTHING, db_column='address_id')
    email = models.CharField(max_length=50, null=True, blank=True)
    store = models.ForeignKey(Store, on_delete=models.DO_NOTHING, db_column='store_id')
    active = models.BooleanField(default=True)
    username = models.CharField(max_length=16)
    password = models.CharField(max_length=40, null=True, blank=True)
    last_update = models.DateTimeField()

    class Meta:
        managed = MANAGED_SCHEMA
        db_table = 'staff'


class Customer(models.Model):
    customer_id = models.AutoField(primary_key=True)
    store = models.ForeignKey(Store, on_delete=models.DO_NOTHING, db_column='store_id')
    first_name = models.CharField(max_length=45)
    last_name = models.CharField(max_length=45)
    email = models.CharField(max_length=50, null=True, blank=True)
    address = models.ForeignKey(Address, on_delete=models.DO_NOTHING, db_column='address_id')
    activebool = models.BooleanField(default=True)
    create_date = models.DateField()
    last_update = models.DateTimeField(null=True, blank=True)
    active = models.IntegerField(null=True, blank=True)

    class Meta:
        managed = MANAGED_SCHEMA
        db_table = 'customer'


class Inventory(models.Model):
    inventory_id = models.AutoField(primary_key=True)
    film = models.ForeignKey(Film, on_delete=models.DO_NOTHING, db_column='film_id')
    store = models.ForeignKey(Store, on_delete=models.DO_NOTHING, db_column='store_id')
    last_update = models.DateTimeField()

    class Meta:
        managed = MANAGED_SCHEMA
        db_table = 'inventory'


class Rental(models.Model):
    rental_id = models.AutoField(primary_key=True)
    rental_date = models.DateTimeField()
    inventory = models.ForeignKey(Inventory, on_delete=models.DO_NOTHING, db_column='inventory_id')
    customer = models.ForeignKey(Customer, on_delete=models.DO_NOTHING, db_column='customer_id')
    return_date = models.DateTimeField(null=True, blank=True)
    staff = models.ForeignKey(Staff, on_delete=models.DO_NOTHING, db_column='staff_id')
    last_update = models.DateTimeField()

    class Meta:
        managed = MANAGED_SCHEMA
        db_table = 'rental'


class Payment(models.Model):
    payment_id = models.AutoField(primary_key=True)
    customer = models.ForeignKey(Customer, on_delete=models.DO_NOTHING, db_column='customer_id')
    staff = models.ForeignKey(Staff, on_delete=models.DO_NOTHING, db_column='staff_id')
    # NOT NULL in dvdrental but nullable in MySQL Sakila; reports over rentals
    # go through paid_rentals(), which skips payments without one
    rental = models.ForeignKey(Rental, on_delete=models.DO_NOTHING, db_column='rental_id', null=True, blank=True)
    amount = models.DecimalField(max_digits=5, decimal_places=2)
    payment_date = models.DateTimeField()

    class Meta:
        managed = MANAGED_SCHEMA
        db_table = 'payment'
