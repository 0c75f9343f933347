from django.urls import path
from .views import (
    category_list_create, category_detail, subcategory_list_create,
    product_list_create, product_detail, product_category_names, product_assignments,
    client_products, client_product_detail, client_products_bulk_assign,
)

urlpatterns = [
    # Category endpoints
    path('categories/', category_list_create, name='category-list-create'),
    path('categories/<int:pk>/', category_detail, name='category-detail'),
    path('subcategories/', subcategory_list_create, name='subcategory-list-create'),

    # Product endpoints
    path('products/', product_list_create, name='product-list-create'),
    path('products/categories/', product_category_names, name='product-categories'),
    path('products/<int:pk>/', product_detail, name='product-detail'),
    path('products/<int:pk>/assignments/', product_assignments, name='product-assignments'),

    # Client catalog endpoints
    path('clients/<int:pk>/products/', client_products, name='client-products'),
    path('clients/<int:pk>/products/bulk-assign/', client_products_bulk_assign, name='client-products-bulk-assign'),
    path('clients/<int:pk>/products/<int:product_pk>/', client_product_detail, name='client-product-detail'),
]
