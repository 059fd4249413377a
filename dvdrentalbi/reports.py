"""
Stakeholder reports over the DVD rental database.

Every report is a read-only aggregation returning a list of row dicts in a
stable order. Reports take ``as_of``, the reference time standing in for
"now"; reports that do not depend on the clock accept and ignore it so the
catalogue can call them all the same way.

Ratios never raise on a zero denominator, they come back as ``None``. Money
and ratio columns are ``Decimal`` rounded half away from zero to two places.
"""

import logging
from collections import Counter, namedtuple
from datetime import datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum, IntEnum

from django.db.models import Count, F, Max, Min, Sum
from django.db.models.functions import ExtractHour, ExtractWeekDay, TruncMonth
from django.utils import timezone

from dvdrentalbi.models import Customer, Inventory, Payment, Rental, Staff, Store

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')
WHOLE = Decimal('1')
HUNDRED = Decimal(100)
ONE_DAY = timedelta(days=1)

TOP_LIMIT = 20
ACTIVE_WINDOW = timedelta(days=30)
HIGH_TURNOVER_RATIO = 10
MEDIUM_TURNOVER_RATIO = 5
LATE_FEE_MULTIPLIER = Decimal('0.5')
MARKETING_SHARE = Decimal('0.10')

CATEGORY = 'rental__inventory__film__filmcategory__category'
ACTOR = 'rental__inventory__film__filmactor__actor'


class DayOfWeek(IntEnum):
    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @property
    def label(self):
        return self.name.capitalize()

    @classmethod
    def from_week_day(cls, week_day):
        """Convert Django's ExtractWeekDay value (1=Sunday..7=Saturday)."""
        return cls(week_day - 1)


class TurnoverCategory(Enum):
    HIGH = 'High Turnover'
    MEDIUM = 'Medium Turnover'
    LOW = 'Low Turnover'

    @classmethod
    def for_ratio(cls, ratio):
        if ratio >= HIGH_TURNOVER_RATIO:
            return cls.HIGH
        if ratio >= MEDIUM_TURNOVER_RATIO:
            return cls.MEDIUM
        return cls.LOW


class ReturnStatus(Enum):
    ON_TIME = 'On Time'
    LATE_RETURN = 'Late Return'
    NEVER_RETURNED = 'Never Returned'


class UnknownReportError(LookupError):
    pass


# ===================================
# Helpers
# ===================================

def to_decimal(value):
    if value is None or isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def safe_divide(numerator, denominator):
    """numerator / denominator, or None when the denominator is zero or missing"""
    if numerator is None or not denominator:
        return None
    return to_decimal(numerator) / to_decimal(denominator)


def round2(value, places=TWO_PLACES):
    if value is None:
        return None
    return to_decimal(value).quantize(places, rounding=ROUND_HALF_UP)


def percentage(numerator, denominator):
    ratio = safe_divide(numerator, denominator)
    if ratio is None:
        return None
    return round2(ratio * HUNDRED)


def average(values):
    values = list(values)
    return safe_divide(sum(values), len(values))


def dense_ranks(values):
    """Map each distinct value to its dense rank, largest value first."""
    ordered = sorted(set(values), reverse=True)
    return {value: rank for rank, value in enumerate(ordered, start=1)}


def reference_day(as_of=None):
    """Midnight of the reference date, the equivalent of SQL CURRENT_DATE."""
    if as_of is None:
        as_of = timezone.now()
    if isinstance(as_of, datetime):
        as_of = as_of.date()
    return datetime.combine(as_of, time.min)


def whole_days(delta):
    # truncates toward zero like EXTRACT(DAYS FROM interval)
    return int(delta / ONE_DAY)


def as_date(value):
    if isinstance(value, datetime):
        return value.date()
    return value


def paid_rentals():
    """Payments attached to a rental: the inner join behind the revenue reports."""
    return Payment.objects.filter(rental__isnull=False)


# ===================================
# Q1: Monthly revenue trend
# ===================================

def monthly_revenue(as_of=None):
    months = (
        Payment.objects
        .annotate(month=TruncMonth('payment_date'))
        .values('month')
        .annotate(
            total_transactions=Count('payment_id'),
            monthly_revenue=Sum('amount'),
        )
        .order_by('month')
    )

    rows = []
    previous = None
    for month in months:
        revenue = round2(month['monthly_revenue'])
        rows.append({
            'month': as_date(month['month']),
            'total_transactions': month['total_transactions'],
            'monthly_revenue': revenue,
            'avg_transaction_value': round2(safe_divide(revenue, month['total_transactions'])),
            'prev_month_revenue': previous,
            'month_over_month_growth_pct': (
                percentage(revenue - previous, previous) if previous is not None else None
            ),
        })
        previous = revenue
    return rows


# ===================================
# Q2: Top films by revenue
# ===================================

def top_films(as_of=None, limit=TOP_LIMIT):
    films = (
        Payment.objects
        .filter(**{f'{CATEGORY}__isnull': False})
        .values(
            film_id=F('rental__inventory__film_id'),
            title=F('rental__inventory__film__title'),
            rating=F('rental__inventory__film__rating'),
            category=F(f'{CATEGORY}__name'),
        )
        .annotate(
            total_rentals=Count('rental'),
            total_revenue=Sum('amount'),
            copies_in_stock=Count('rental__inventory', distinct=True),
        )
        .order_by('-total_revenue', 'title', 'film_id', 'category')
    )

    rows = []
    for film in films[:limit]:
        copies = film['copies_in_stock']
        if not copies:
            continue
        revenue = round2(film['total_revenue'])
        rows.append({
            'film_id': film['film_id'],
            'title': film['title'],
            'rating': film['rating'],
            'category': film['category'],
            'total_rentals': film['total_rentals'],
            'total_revenue': revenue,
            'avg_rental_price': round2(safe_divide(revenue, film['total_rentals'])),
            'copies_in_stock': copies,
            'revenue_per_copy': round2(safe_divide(revenue, copies)),
            'rentals_per_copy': round2(safe_divide(film['total_rentals'], copies)),
        })
    return rows


# ===================================
# Q3: Customer lifetime value and retention
# ===================================

def customer_metrics():
    """Per-customer totals over paid rentals."""
    customers = (
        paid_rentals()
        .values(
            'rental__customer_id',
            'rental__customer__first_name',
            'rental__customer__last_name',
        )
        .annotate(
            total_rentals=Count('rental'),
            lifetime_value=Sum('amount'),
            first_rental_date=Min('rental__rental_date'),
            last_rental_date=Max('rental__rental_date'),
        )
        .order_by('rental__customer_id')
    )

    return [
        {
            'customer_id': customer['rental__customer_id'],
            'customer_name': (
                f"{customer['rental__customer__first_name']} {customer['rental__customer__last_name']}"
            ),
            'total_rentals': customer['total_rentals'],
            'lifetime_value': round2(customer['lifetime_value']),
            'first_rental_date': customer['first_rental_date'],
            'last_rental_date': customer['last_rental_date'],
            'customer_lifespan_days': whole_days(
                customer['last_rental_date'] - customer['first_rental_date']
            ),
        }
        for customer in customers
    ]


def customer_lifetime_value(as_of=None):
    customers = customer_metrics()
    cutoff = reference_day(as_of) - ACTIVE_WINDOW
    active = sum(1 for customer in customers if customer['last_rental_date'] >= cutoff)

    return [{
        'avg_customer_lifetime_value': round2(average(c['lifetime_value'] for c in customers)),
        'avg_rentals_per_customer': round2(average(c['total_rentals'] for c in customers)),
        'avg_customer_lifespan_days': round2(
            average(c['customer_lifespan_days'] for c in customers), WHOLE
        ),
        'active_customers_last_30_days': active,
        'total_customers': len(customers),
        'customer_retention_rate_pct': percentage(active, len(customers)),
    }]


# ===================================
# Q4: Store profitability
# ===================================

def store_profitability(as_of=None):
    sales = {
        row['rental__customer__store_id']: row
        for row in (
            paid_rentals()
            .values('rental__customer__store_id')
            .annotate(
                total_customers=Count('rental__customer', distinct=True),
                total_rentals=Count('rental'),
                total_revenue=Sum('amount'),
            )
            .order_by()
        )
    }
    staff_counts = dict(
        Staff.objects.values_list('store_id').annotate(staff_count=Count('staff_id')).order_by()
    )

    rows = []
    for store in Store.objects.select_related('address__city__country').order_by('store_id'):
        store_sales = sales.get(store.store_id)
        staff_count = staff_counts.get(store.store_id, 0)
        # inner joins: a store needs paid rentals and staff to be reported
        if store_sales is None or not staff_count:
            continue
        revenue = round2(store_sales['total_revenue'])
        rows.append({
            'store_id': store.store_id,
            'store_location': store.location,
            'total_customers': store_sales['total_customers'],
            'total_rentals': store_sales['total_rentals'],
            'total_revenue': revenue,
            'avg_transaction_value': round2(safe_divide(revenue, store_sales['total_rentals'])),
            'revenue_per_customer': round2(safe_divide(revenue, store_sales['total_customers'])),
            'staff_count': staff_count,
            'revenue_per_staff_member': round2(safe_divide(revenue, staff_count)),
        })

    rows.sort(key=lambda row: (-row['total_revenue'], row['store_id']))
    return rows


# ===================================
# Q5: Peak hours and days
# ===================================

def peak_hours(as_of=None, limit=TOP_LIMIT):
    slots = (
        paid_rentals()
        .annotate(
            week_day=ExtractWeekDay('rental__rental_date'),
            hour=ExtractHour('rental__rental_date'),
        )
        .values('week_day', 'hour')
        .annotate(
            rental_count=Count('payment_id'),
            hourly_revenue=Sum('amount'),
        )
        .order_by('-rental_count', 'week_day', 'hour')
    )

    rows = []
    for slot in slots[:limit]:
        day = DayOfWeek.from_week_day(slot['week_day'])
        revenue = round2(slot['hourly_revenue'])
        rows.append({
            'day_of_week': int(day),
            'day_name': day.label,
            'hour_of_day': slot['hour'],
            'rental_count': slot['rental_count'],
            'hourly_revenue': revenue,
            'avg_transaction_value': round2(safe_divide(revenue, slot['rental_count'])),
        })
    return rows


# ===================================
# Q6: Inventory turnover
# ===================================

def inventory_turnover(as_of=None):
    today = reference_day(as_of)
    films = (
        Inventory.objects
        .filter(film__filmcategory__category__isnull=False)
        .values(
            'film_id',
            title=F('film__title'),
            category=F('film__filmcategory__category__name'),
        )
        .annotate(
            total_copies=Count('inventory_id', distinct=True),
            total_rentals=Count('rental'),
            last_rental_date=Max('rental__rental_date'),
        )
        .order_by()
    )

    rows = []
    for film in films:
        ratio = safe_divide(film['total_rentals'], film['total_copies'])
        if ratio is None:
            continue
        last_rental = film['last_rental_date']
        rows.append({
            'film_id': film['film_id'],
            'title': film['title'],
            'category': film['category'],
            'total_copies': film['total_copies'],
            'total_rentals': film['total_rentals'],
            'turnover_ratio': round2(ratio),
            'turnover_category': TurnoverCategory.for_ratio(ratio).value,
            'last_rental_date': last_rental,
            'days_since_last_rental': whole_days(today - last_rental) if last_rental else None,
        })

    rows.sort(key=lambda row: (-row['turnover_ratio'], row['title'], row['film_id'], row['category']))
    return rows


# ===================================
# Q7: Late returns and overdue fees
# ===================================

def classify_return(rental_date, return_date, rental_duration, today):
    """Return (status, days_overdue) for one rental against its due date."""
    due_date = rental_date + timedelta(days=rental_duration)
    if return_date is None:
        return ReturnStatus.NEVER_RETURNED, whole_days(today - due_date)
    if return_date > due_date:
        return ReturnStatus.LATE_RETURN, whole_days(return_date - due_date)
    return ReturnStatus.ON_TIME, 0


def rental_return_statuses(as_of=None):
    today = reference_day(as_of)
    rentals = (
        Rental.objects
        .values(
            'rental_id',
            'rental_date',
            'return_date',
            rental_duration=F('inventory__film__rental_duration'),
            rental_rate=F('inventory__film__rental_rate'),
        )
        .order_by('rental_id')
    )

    rows = []
    for rental in rentals.iterator():
        status, days_overdue = classify_return(
            rental['rental_date'], rental['return_date'], rental['rental_duration'], today
        )
        rows.append({
            'rental_id': rental['rental_id'],
            'rental_date': rental['rental_date'],
            'return_date': rental['return_date'],
            'rental_duration': rental['rental_duration'],
            'return_status': status.value,
            'days_overdue': days_overdue,
            'rental_rate': to_decimal(rental['rental_rate']),
        })
    return rows


def late_returns(as_of=None):
    rentals = rental_return_statuses(as_of)
    statuses = Counter(rental['return_status'] for rental in rentals)
    overdue = [r for r in rentals if r['return_status'] != ReturnStatus.ON_TIME.value]
    fees = [r['days_overdue'] * r['rental_rate'] * LATE_FEE_MULTIPLIER for r in overdue]

    return [{
        'total_rentals': len(rentals),
        'on_time_returns': statuses[ReturnStatus.ON_TIME.value],
        'late_returns': statuses[ReturnStatus.LATE_RETURN.value],
        'never_returned': statuses[ReturnStatus.NEVER_RETURNED.value],
        'late_return_rate_pct': percentage(statuses[ReturnStatus.LATE_RETURN.value], len(rentals)),
        'avg_days_overdue': round2(average(r['days_overdue'] for r in overdue)),
        'potential_late_fee_revenue': round2(sum(fees)) if fees else None,
    }]


# ===================================
# Q8: Category popularity and profitability
# ===================================

def category_performance(as_of=None):
    categories = (
        Payment.objects
        .filter(**{f'{CATEGORY}__isnull': False})
        .values(
            category_id=F(f'{CATEGORY}__category_id'),
            category=F(f'{CATEGORY}__name'),
        )
        .annotate(
            total_rentals=Count('rental'),
            unique_films=Count('rental__inventory__film', distinct=True),
            total_revenue=Sum('amount'),
        )
        .order_by()
    )

    rows = []
    for category in categories:
        revenue = round2(category['total_revenue'])
        revenue_per_rental = round2(safe_divide(revenue, category['total_rentals']))
        rows.append({
            'category_id': category['category_id'],
            'category': category['category'],
            'total_rentals': category['total_rentals'],
            'unique_films': category['unique_films'],
            'total_revenue': revenue,
            'avg_rental_price': revenue_per_rental,
            'revenue_per_rental': revenue_per_rental,
            'avg_rentals_per_film': round2(
                safe_divide(category['total_rentals'], category['unique_films'])
            ),
        })

    # two independent axes, a category can rank differently on each
    revenue_ranks = dense_ranks(row['total_revenue'] for row in rows)
    popularity_ranks = dense_ranks(row['total_rentals'] for row in rows)
    for row in rows:
        row['revenue_rank'] = revenue_ranks[row['total_revenue']]
        row['popularity_rank'] = popularity_ranks[row['total_rentals']]

    rows.sort(key=lambda row: (-row['total_revenue'], row['category'], row['category_id']))
    return rows


# ===================================
# Q9: Customer acquisition vs. value
# ===================================

def customer_acquisition(as_of=None):
    acquisitions = (
        Customer.objects
        .annotate(month=TruncMonth('create_date'))
        .values('month')
        .annotate(new_customers_acquired=Count('customer_id'))
        .order_by('month')
    )
    revenue_by_month = {
        as_date(row['month']): row['monthly_revenue']
        for row in (
            Payment.objects
            .annotate(month=TruncMonth('payment_date'))
            .values('month')
            .annotate(monthly_revenue=Sum('amount'))
            .order_by()
        )
    }

    rows = []
    for acquisition in acquisitions:
        month = as_date(acquisition['month'])
        new_customers = acquisition['new_customers_acquired']
        # left join: months without payments report zero revenue
        revenue = round2(revenue_by_month.get(month) or 0)
        spend = revenue * MARKETING_SHARE
        rows.append({
            'acquisition_month': month,
            'new_customers_acquired': new_customers,
            'monthly_revenue': revenue,
            'revenue_per_new_customer': round2(safe_divide(revenue, new_customers)),
            'estimated_marketing_spend': round2(spend),
            'estimated_acquisition_cost': round2(safe_divide(spend, new_customers)),
        })
    return rows


# ===================================
# Q10: Actor popularity
# ===================================

def actor_popularity(as_of=None, limit=TOP_LIMIT):
    actors = (
        Payment.objects
        .filter(**{f'{ACTOR}__isnull': False})
        .values(
            actor_id=F(f'{ACTOR}_id'),
            first_name=F(f'{ACTOR}__first_name'),
            last_name=F(f'{ACTOR}__last_name'),
        )
        .annotate(
            film_count=Count('rental__inventory__film', distinct=True),
            total_rentals=Count('rental'),
            total_revenue=Sum('amount'),
        )
        .order_by('-total_revenue', 'last_name', 'first_name', 'actor_id')
    )

    rows = []
    for actor in actors[:limit]:
        revenue = round2(actor['total_revenue'])
        rows.append({
            'actor_id': actor['actor_id'],
            'actor_name': f"{actor['first_name']} {actor['last_name']}",
            'film_count': actor['film_count'],
            'total_rentals': actor['total_rentals'],
            'total_revenue': revenue,
            'revenue_per_film': round2(safe_divide(revenue, actor['film_count'])),
        })
    return rows


# ===================================
# Catalogue
# ===================================

Report = namedtuple('Report', ['name', 'title', 'question', 'function'])

CATALOGUE = (
    Report('monthly-revenue', 'Monthly revenue trend',
           'What is our monthly revenue trend and growth rate?', monthly_revenue),
    Report('top-films', 'Top films by revenue',
           'Which films generate the most revenue and should we stock more?', top_films),
    Report('customer-lifetime-value', 'Customer lifetime value and retention',
           'What is our customer lifetime value and retention rate?', customer_lifetime_value),
    Report('store-profitability', 'Store profitability',
           'Which store locations are most profitable?', store_profitability),
    Report('peak-hours', 'Peak hours and days',
           'What are our peak business hours and days?', peak_hours),
    Report('inventory-turnover', 'Inventory turnover',
           'How effective is our inventory turnover?', inventory_turnover),
    Report('late-returns', 'Late returns and overdue fees',
           'What is our late return rate and lost revenue from overdue fees?', late_returns),
    Report('category-performance', 'Category popularity and profitability',
           'Which movie categories are most popular and profitable?', category_performance),
    Report('customer-acquisition', 'Customer acquisition vs. value',
           'What is our customer acquisition cost vs. customer value?', customer_acquisition),
    Report('actor-popularity', 'Actor popularity',
           "Which actors' films draw the most paying rentals?", actor_popularity),
)

REPORTS = {report.name: report for report in CATALOGUE}


def get_report(name):
    try:
        return REPORTS[name]
    except KeyError:
        raise UnknownReportError(
            f"Unknown report {name!r}, expected one of: {', '.join(REPORTS)}"
        ) from None


def run_report(name, as_of=None):
    report = get_report(name)
    logger.info("Running report %s", report.name)
    rows = report.function(as_of=as_of)
    logger.debug("Report %s returned %d rows", report.name, len(rows))
    return rows


def run_all(as_of=None):
    """Run the whole catalogue against a single reference time."""
    if as_of is None:
        as_of = timezone.now()
    return {report.name: run_report(report.name, as_of=as_of) for report in CATALOGUE}
