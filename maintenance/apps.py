from django.apps import AppConfig


class MaintenanceConfig(AppConfig):
    """
    Configuration for the Maintenance application.

    This app manages repair items and their physical location:
    - Maintenance records (customer item, status, serial number)
    - Status history (who moved what, from where, to where)
    - The quick scanner used at the counter and in the warehouse
    """

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'maintenance'
    verbose_name = 'Maintenance Tracking'

    def ready(self):
        """
        Import signal handlers when the app is ready.

        Signals handle:
        - Maintenance number logging on intake
        - Audit trail lines for every status history row
        """
        import maintenance.signals  # noqa: F401
