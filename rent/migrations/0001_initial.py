from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('tenants', '0001_initial'),
        ('properties', '0001_initial'),
        ('leases', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='RentPeriod',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('period_due_date', models.DateField()),
                ('due_date_override', models.DateField(blank=True, null=True)),
                ('rent_amount', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(0)])),
                ('rent_cadence', models.CharField(choices=[('weekly', 'Weekly'), ('bi-weekly', 'Bi-weekly'), ('monthly', 'Monthly')], default='monthly', max_length=20)),
                ('status', models.CharField(choices=[('unpaid', 'Unpaid'), ('partial', 'Partial'), ('paid', 'Paid')], db_index=True, default='unpaid', max_length=10)),
                ('amount_paid', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('late_fee_applied', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('late_fee_waived', models.BooleanField(default=False)),
                ('notes', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='rent_periods', to='tenants.tenant')),
                ('property', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='rent_periods', to='properties.property')),
                ('lease', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='rent_periods', to='leases.lease')),
            ],
            options={
                'ordering': ['period_due_date', 'id'],
            },
        ),
        migrations.AddConstraint(
            model_name='rentperiod',
            constraint=models.UniqueConstraint(fields=('lease', 'period_due_date'), name='uniq_rent_period_per_lease_due_date'),
        ),
        migrations.AddIndex(
            model_name='rentperiod',
            index=models.Index(fields=['tenant', 'status', 'period_due_date'], name='rent_period_tenant_status_idx'),
        ),
    ]
