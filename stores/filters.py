"""django-filter FilterSet for public store browsing and the admin store list."""
import django_filters

from .models import Store


class StoreFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    email = django_filters.CharFilter(field_name="email", lookup_expr="icontains")
    address = django_filters.CharFilter(field_name="address", lookup_expr="icontains")
    owner = django_filters.NumberFilter(field_name="owner_id")
    # Works on the with_rating_stats() annotation.
    min_rating = django_filters.NumberFilter(field_name="average_rating", lookup_expr="gte")

    class Meta:
        model = Store
        fields = ["name", "email", "address", "owner"]
