"""
Checkout: Django Admin Registrations

Orders are created by the checkout functions. Admins only move paid orders
along (processing / shipped / cancelled / refunded); line items and Stripe
references are read-only here.
"""

from django.contrib import admin, messages

from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = ("product_id", "name", "price", "quantity", "total")

    def has_add_permission(self, request, obj=None):
        return False


def _set_status(modeladmin, request, queryset, status):
    updated = queryset.exclude(status=Order.STATUS_PENDING).update(status=status)
    skipped = queryset.count() - updated
    modeladmin.message_user(request, f"{updated} order(s) marked {status}.", messages.SUCCESS)
    if skipped:
        modeladmin.message_user(request, f"{skipped} unpaid order(s) left unchanged.", messages.WARNING)


@admin.action(description="Mark selected orders as processing")
def mark_processing(modeladmin, request, queryset):
    _set_status(modeladmin, request, queryset, Order.STATUS_PROCESSING)


@admin.action(description="Mark selected orders as shipped")
def mark_shipped(modeladmin, request, queryset):
    _set_status(modeladmin, request, queryset, Order.STATUS_SHIPPED)


@admin.action(description="Mark selected orders as cancelled")
def mark_cancelled(modeladmin, request, queryset):
    _set_status(modeladmin, request, queryset, Order.STATUS_CANCELLED)


@admin.action(description="Mark selected orders as refunded")
def mark_refunded(modeladmin, request, queryset):
    _set_status(modeladmin, request, queryset, Order.STATUS_REFUNDED)


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "customer_name", "email", "subtotal", "status", "created_at")
    list_filter = ("status", "created_at")
    search_fields = ("id", "customer_name", "email", "stripe_session_id", "stripe_payment_intent")
    readonly_fields = (
        "id",
        "subtotal",
        "stripe_session_id",
        "stripe_payment_intent",
        "stripe_receipt_url",
        "created_at",
        "updated_at",
    )
    inlines = [OrderItemInline]
    actions = [mark_processing, mark_shipped, mark_cancelled, mark_refunded]
