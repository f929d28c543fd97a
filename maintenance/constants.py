from django.db import models


class MaintenanceStatus(models.TextChoices):
    """Physical location / readiness of a maintenance item."""

    AT_COMPANY = 'موجودة في الشركة', 'At the company'
    IN_SHOP = 'موجودة في المحل وجاهزة للتسليم', 'In shop, ready for delivery'
    IN_WAREHOUSE = 'موجودة في المخزن وجاهزة للتسليم', 'In warehouse, ready for delivery'
    READY_FROM_SHOP = 'جاهزة للتسليم للزبون من المحل', 'Ready for customer delivery from shop'
    READY_FROM_WAREHOUSE = 'جاهزة للتسليم للزبون من المخزن', 'Ready for customer delivery from warehouse'
    DELIVERED = 'سلمت للزبون', 'Delivered to customer'
    RETURNED_CHARGED = 'تم ارجاعها للشركة وخصمها للزبون', 'Returned to company, charged to customer'


# Statuses no scanner transition leaves
TERMINAL_STATUSES = frozenset({
    MaintenanceStatus.DELIVERED,
    MaintenanceStatus.RETURNED_CHARGED,
})


class TransitionId(models.TextChoices):
    STORE_TO_WAREHOUSE = 'store_to_warehouse', 'ترحيل من المحل إلى المخزن'
    RECEIVE_COMPANY_STORE = 'receive_company_store', 'استلام من الشركة (في المحل)'
    RECEIVE_COMPANY_WAREHOUSE = 'receive_company_warehouse', 'استلام من الشركة (في المخزن)'
    SEND_TO_COMPANY = 'send_to_company', 'تسليم إلى الشركة'
    WAREHOUSE_TO_STORE = 'warehouse_to_store', 'ترحيل من المخزن إلى المحل'
    DELIVER_TO_CUSTOMER = 'deliver_to_customer', 'تسليم للزبون'


class Location(models.TextChoices):
    SHOP = 'المحل', 'Shop'
    WAREHOUSE = 'المخزن', 'Warehouse'


MAINTENANCE_NO_PREFIX = 'MNT'
