from rest_framework import serializers

from .models import MaintenanceHistory, MaintenanceRecord
from .transitions import TRANSITIONS


class MaintenanceHistorySerializer(serializers.ModelSerializer):
    """Serializer for status history rows"""

    changed_by_username = serializers.CharField(source='changed_by.username', read_only=True, default=None)

    class Meta:
        model = MaintenanceHistory
        fields = [
            'id',
            'maintenance',
            'status_from',
            'status_to',
            'changed_by',
            'changed_by_username',
            'notes',
            'created_at',
        ]


class MaintenanceRecordSerializer(serializers.ModelSerializer):
    """Serializer for maintenance records"""

    status_display = serializers.CharField(source='get_status_display', read_only=True)
    location_display = serializers.CharField(source='get_location_display', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)
    is_terminal = serializers.BooleanField(read_only=True)
    allowed_transitions = serializers.SerializerMethodField()

    class Meta:
        model = MaintenanceRecord
        fields = [
            'maint_no',
            'item_name',
            'customer_name',
            'customer_phone',
            'location',
            'location_display',
            'company',
            'serial_no',
            'problem',
            'under_warranty',
            'date_of_purchase',
            'date_of_receive',
            'status',
            'status_display',
            'is_terminal',
            'allowed_transitions',
            'created_by',
            'created_by_username',
            'created_at',
            'updated_at',
        ]

    def get_allowed_transitions(self, obj):
        """Transitions an operator could scan this record with right now"""
        return [t.id for t in TRANSITIONS if t.is_legal(obj.status)]
