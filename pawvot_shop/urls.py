"""
URL configuration for pawvot_shop project.
"""
from django.contrib import admin
from django.urls import path

from shop.api import views

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/orders', views.orders_collection, name='orders'),
    path('api/orders/admin/all', views.all_orders, name='orders-all'),
    path('api/orders/dashboard/stats', views.dashboard_stats, name='orders-stats'),
    path('api/orders/<str:order_id>', views.order_detail, name='order-detail'),
    path('api/orders/<str:order_id>/pay', views.pay_order, name='order-pay'),
    path('api/orders/<str:order_id>/status', views.update_order_status, name='order-status'),
    path('api/orders/<str:order_id>/cancel', views.cancel_order, name='order-cancel'),
    path('graphql/', views.graphql_view, name='graphql'),
]
