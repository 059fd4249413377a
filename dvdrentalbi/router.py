from django.conf import settings


APP_LABEL = 'dvdrentalbi'


def rental_database():
    return getattr(settings, 'DVDRENTAL_DATABASE', 'dvdrental')


class DvdRentalRouter:

    def db_for_read(self, model, **hints):
        """
        read from dvdrental
        """
        if model._meta.app_label == APP_LABEL:
            return rental_database()
        return None

    def db_for_write(self, model, **hints):
        """
        writes only happen from test fixtures, keep them on the same alias
        """
        if model._meta.app_label == APP_LABEL:
            return rental_database()
        return None

    def allow_relation(self, obj1, obj2, **hints):
        """
        Allow relations if both models are in the dvdrentalbi app.
        """
        if obj1._meta.app_label == APP_LABEL and obj2._meta.app_label == APP_LABEL:
            return True
        return None

    def allow_migrate(self, db, app_label, model_name=None, **hints):
        """
        Rental tables only ever live on the dvdrental alias.
        """
        if app_label == APP_LABEL:
            return db == rental_database()
        return None
