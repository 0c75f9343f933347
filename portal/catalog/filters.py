import django_filters
from django.db.models import Q

from .models import Product

ALL = 'all'


class ProductFilter(django_filters.FilterSet):
    """
    Catalog filters shared by the owner product list and client catalogs.

    category/subcategory accept either an id or a name; "all" disables the
    filter.
    """
    search = django_filters.CharFilter(method='filter_search')
    category = django_filters.CharFilter(method='filter_category')
    subcategory = django_filters.CharFilter(method='filter_subcategory')
    manufacturer = django_filters.CharFilter(field_name='manufacturer', lookup_expr='iexact')
    status = django_filters.ChoiceFilter(choices=Product.STATUS_CHOICES)
    min_price = django_filters.NumberFilter(field_name='base_unit_price', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='base_unit_price', lookup_expr='lte')

    class Meta:
        model = Product
        fields = ['search', 'category', 'subcategory', 'manufacturer', 'status']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(item_number__icontains=value) |
            Q(name__icontains=value) |
            Q(description__icontains=value)
        )

    def filter_category(self, queryset, name, value):
        return _filter_by_id_or_name(queryset, 'category', value)

    def filter_subcategory(self, queryset, name, value):
        return _filter_by_id_or_name(queryset, 'subcategory', value)


def _filter_by_id_or_name(queryset, field, value):
    value = (value or '').strip()
    if not value or value.lower() == ALL:
        return queryset
    if value.isdigit():
        return queryset.filter(**{f'{field}_id': int(value)})
    return queryset.filter(**{f'{field}__name__iexact': value})
