from django.contrib import admin
from simple_history.admin import SimpleHistoryAdmin

from .models import (
    Product,
    Attribute,
    AttributeValue,
    Variant,
    VariantAttributeValue,
)


# =============================================================================
# Inlines
# =============================================================================

class AttributeValueInline(admin.TabularInline):
    model = AttributeValue
    extra = 1
    fields = ['value']


class VariantAttributeValueInline(admin.TabularInline):
    """Attribute values are fixed once a variant exists."""
    model = VariantAttributeValue
    extra = 0
    fields = ['attribute_value']
    readonly_fields = ['attribute_value']
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


class VariantInline(admin.TabularInline):
    model = Variant
    extra = 0
    fields = ['sku', 'status', 'regular_price', 'sale_price', 'stock']
    readonly_fields = ['sku']
    show_change_link = True
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


# =============================================================================
# Model Admins
# =============================================================================

@admin.register(Product)
class ProductAdmin(SimpleHistoryAdmin):
    list_display = ['name', 'slug', 'variant_count', 'is_active', 'created_at']
    list_filter = ['is_active', 'created_at']
    search_fields = ['name', 'slug', 'description']
    prepopulated_fields = {'slug': ('name',)}
    readonly_fields = ['variant_count', 'created_at', 'updated_at']
    inlines = [VariantInline]

    fieldsets = (
        (None, {
            'fields': ('name', 'slug', 'description', 'is_active')
        }),
        ('Info', {
            'fields': ('variant_count', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(Attribute)
class AttributeAdmin(admin.ModelAdmin):
    list_display = ['name', 'value_count', 'created_at']
    search_fields = ['name']
    inlines = [AttributeValueInline]

    def value_count(self, obj):
        return obj.values.count()
    value_count.short_description = 'Values'


@admin.register(AttributeValue)
class AttributeValueAdmin(admin.ModelAdmin):
    list_display = ['value', 'attribute', 'created_at']
    list_filter = ['attribute']
    search_fields = ['value', 'attribute__name']
    autocomplete_fields = ['attribute']

    def get_readonly_fields(self, request, obj=None):
        # A value stays under the attribute it was created for
        if obj is not None:
            return ['attribute']
        return []


@admin.register(Variant)
class VariantAdmin(SimpleHistoryAdmin):
    list_display = [
        'id', 'sku', 'product', 'options', 'status',
        'regular_price', 'sale_price', 'stock'
    ]
    list_filter = ['status', 'product']
    list_editable = ['status', 'regular_price', 'sale_price', 'stock']
    search_fields = ['sku', 'product__name', 'signature']
    readonly_fields = ['product', 'signature', 'is_on_sale', 'created_at', 'updated_at']
    inlines = [VariantAttributeValueInline]
    list_per_page = 50

    fieldsets = (
        (None, {
            'fields': ('product', 'sku', 'status', 'signature')
        }),
        ('Pricing', {
            'fields': ('regular_price', 'sale_price', 'is_on_sale')
        }),
        ('Inventory', {
            'fields': ('stock', 'weight')
        }),
        ('Info', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    actions = ['publish_variants', 'archive_variants', 'mark_out_of_stock']

    def has_add_permission(self, request):
        # Variants are created through generation or the product API
        return False

    def options(self, obj):
        return ' / '.join(obj.get_options_dict().values()) or '-'
    options.short_description = 'Options'

    @admin.action(description='Publish selected variants')
    def publish_variants(self, request, queryset):
        count = queryset.update(status=Variant.STATUS_PUBLISHED)
        self.message_user(request, f'{count} variants published.')

    @admin.action(description='Archive selected variants')
    def archive_variants(self, request, queryset):
        count = queryset.update(status=Variant.STATUS_ARCHIVED)
        self.message_user(request, f'{count} variants archived.')

    @admin.action(description='Mark as out of stock')
    def mark_out_of_stock(self, request, queryset):
        count = queryset.update(stock=0)
        self.message_user(request, f'{count} variants updated.')


# =============================================================================
# Admin Site Configuration
# =============================================================================

admin.site.site_header = 'Catalog Back-office'
admin.site.site_title = 'Catalog'
admin.site.index_title = 'Administration'
