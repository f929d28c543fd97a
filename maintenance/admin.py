from django.contrib import admin
from django.utils.html import format_html
from django.http import HttpResponse
import csv

from .constants import MaintenanceStatus
from .models import MaintenanceHistory, MaintenanceRecord
from .transitions import TRANSITIONS

STATUS_COLORS = {
    MaintenanceStatus.AT_COMPANY: '#d97706',
    MaintenanceStatus.IN_SHOP: '#2563eb',
    MaintenanceStatus.IN_WAREHOUSE: '#7c3aed',
    MaintenanceStatus.READY_FROM_SHOP: '#16a34a',
    MaintenanceStatus.READY_FROM_WAREHOUSE: '#059669',
    MaintenanceStatus.DELIVERED: '#0d9488',
    MaintenanceStatus.RETURNED_CHARGED: '#6b7280',
}


# ============================================
# CUSTOM ACTIONS
# ============================================

def export_to_csv(modeladmin, request, queryset):
    """Export selected items to CSV"""
    opts = modeladmin.model._meta
    response = HttpResponse(content_type='text/csv; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename={opts.verbose_name_plural}.csv'

    writer = csv.writer(response)
    fields = [field for field in opts.get_fields() if not field.many_to_many and not field.one_to_many]

    writer.writerow([field.verbose_name for field in fields])
    for obj in queryset:
        writer.writerow([getattr(obj, field.name) for field in fields])

    return response
export_to_csv.short_description = "Export to CSV"


# ============================================
# INLINE ADMINS
# ============================================

class MaintenanceHistoryInline(admin.TabularInline):
    model = MaintenanceHistory
    extra = 0
    can_delete = False
    readonly_fields = ['status_from', 'status_to', 'changed_by', 'notes', 'created_at']
    fields = readonly_fields

    def has_add_permission(self, request, obj=None):
        return False


# ============================================
# MAINTENANCE RECORD ADMIN
# ============================================

@admin.register(MaintenanceRecord)
class MaintenanceRecordAdmin(admin.ModelAdmin):
    list_display = [
        'maint_no',
        'item_name',
        'customer_name',
        'status_badge',
        'location',
        'under_warranty',
        'created_at',
    ]
    list_filter = ['status', 'location', 'under_warranty']
    search_fields = ['maint_no', 'item_name', 'customer_name', 'customer_phone', 'serial_no']
    readonly_fields = ['maint_no', 'allowed_transitions', 'created_by', 'created_at', 'updated_at']
    fieldsets = (
        ('Item', {'fields': ('maint_no', 'item_name', 'serial_no', 'problem', 'company')}),
        ('Customer', {'fields': ('customer_name', 'customer_phone')}),
        ('Status', {'fields': ('status', 'allowed_transitions', 'location')}),
        ('Warranty & Dates', {
            'fields': ('under_warranty', 'date_of_purchase', 'date_of_receive'),
            'classes': ('collapse',),
        }),
        ('Audit', {'fields': ('created_by', 'created_at', 'updated_at'), 'classes': ('collapse',)}),
    )
    inlines = [MaintenanceHistoryInline]
    actions = [export_to_csv]

    def status_badge(self, obj):
        color = STATUS_COLORS.get(obj.status, '#6c757d')
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 10px; border-radius: 3px;">{}</span>',
            color,
            obj.status,
        )
    status_badge.short_description = 'Status'

    def allowed_transitions(self, obj):
        labels = [t.label for t in TRANSITIONS if t.is_legal(obj.status)]
        return ', '.join(labels) if labels else '—'
    allowed_transitions.short_description = 'Scanner actions'

    def get_readonly_fields(self, request, obj=None):
        # Status is chosen at intake; afterwards only the scanner moves it
        if obj is not None:
            return self.readonly_fields + ['status']
        return self.readonly_fields

    def save_model(self, request, obj, form, change):
        if not change and not obj.created_by_id:
            obj.created_by = request.user
        super().save_model(request, obj, form, change)


@admin.register(MaintenanceHistory)
class MaintenanceHistoryAdmin(admin.ModelAdmin):
    list_display = ['maintenance', 'status_from', 'status_to', 'changed_by', 'created_at']
    list_filter = ['status_to', 'created_at']
    search_fields = ['maintenance__maint_no', 'notes']
    readonly_fields = ['maintenance', 'status_from', 'status_to', 'changed_by', 'notes', 'created_at']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
