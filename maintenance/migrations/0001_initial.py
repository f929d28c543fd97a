import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='MaintenanceRecord',
            fields=[
                ('maint_no', models.CharField(editable=False, max_length=50, primary_key=True, serialize=False)),
                ('item_name', models.CharField(max_length=255)),
                ('customer_name', models.CharField(blank=True, max_length=255)),
                ('customer_phone', models.CharField(blank=True, max_length=50)),
                ('location', models.CharField(choices=[('المحل', 'Shop'), ('المخزن', 'Warehouse')], default='المحل', max_length=20)),
                ('company', models.CharField(blank=True, max_length=255)),
                ('serial_no', models.CharField(blank=True, max_length=255)),
                ('problem', models.TextField(blank=True)),
                ('under_warranty', models.BooleanField(default=False)),
                ('date_of_purchase', models.DateField(blank=True, null=True)),
                ('date_of_receive', models.DateField(blank=True, null=True)),
                ('status', models.CharField(
                    choices=[
                        ('موجودة في الشركة', 'At the company'),
                        ('موجودة في المحل وجاهزة للتسليم', 'In shop, ready for delivery'),
                        ('موجودة في المخزن وجاهزة للتسليم', 'In warehouse, ready for delivery'),
                        ('جاهزة للتسليم للزبون من المحل', 'Ready for customer delivery from shop'),
                        ('جاهزة للتسليم للزبون من المخزن', 'Ready for customer delivery from warehouse'),
                        ('سلمت للزبون', 'Delivered to customer'),
                        ('تم ارجاعها للشركة وخصمها للزبون', 'Returned to company, charged to customer'),
                    ],
                    db_index=True,
                    default='موجودة في المحل وجاهزة للتسليم',
                    max_length=100,
                )),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name='maintenance_records',
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'verbose_name': 'Maintenance Record',
                'verbose_name_plural': 'Maintenance Records',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='MaintenanceHistory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status_from', models.CharField(blank=True, max_length=100)),
                ('status_to', models.CharField(max_length=100)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('changed_by', models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name='maintenance_changes',
                    to=settings.AUTH_USER_MODEL,
                )),
                ('maintenance', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='history',
                    to='maintenance.maintenancerecord',
                )),
            ],
            options={
                'verbose_name': 'Maintenance History',
                'verbose_name_plural': 'Maintenance History',
                'ordering': ['-created_at', '-id'],
            },
        ),
    ]
