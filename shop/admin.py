from django.contrib import admin

from shop.infra.models import (
    CustomerORM,
    IdempotencyKey,
    OrderItemORM,
    OrderORM,
    ProductORM,
)
from shop.infra.outbox import OutboxEvent


@admin.register(CustomerORM)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "email", "role", "created_at")
    list_filter = ("role",)
    search_fields = ("name", "email")


@admin.register(ProductORM)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "price", "discount", "count_in_stock", "is_active")
    list_filter = ("is_active", "category")
    search_fields = ("name", "brand")


class OrderItemInline(admin.TabularInline):
    model = OrderItemORM
    extra = 0
    readonly_fields = ("product_id", "position", "name", "image", "quantity", "unit_price")


@admin.register(OrderORM)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "customer", "status", "total_price", "is_paid", "is_delivered", "created_at")
    list_filter = ("status", "is_paid", "payment_method", "created_at")
    search_fields = ("id", "customer__name", "customer__email", "tracking_number")
    inlines = [OrderItemInline]


@admin.register(OrderItemORM)
class OrderItemAdmin(admin.ModelAdmin):
    list_display = ("id", "order", "product_id", "quantity", "unit_price", "created_at")
    list_filter = ("created_at",)


@admin.register(IdempotencyKey)
class IdempotencyAdmin(admin.ModelAdmin):
    list_display = ("key", "user_id", "operation", "status_code", "created_at")
    list_filter = ("operation", "created_at")
    search_fields = ("key", "user_id")


@admin.register(OutboxEvent)
class OutboxEventAdmin(admin.ModelAdmin):
    list_display = ("id", "aggregate_id", "event_type", "processed", "retry_count", "created_at")
    list_filter = ("processed", "event_type", "created_at")
    readonly_fields = (
        "id", "aggregate_id", "aggregate_type", "event_type", "event_data",
        "processed", "processed_at", "retry_count", "last_error",
    )
