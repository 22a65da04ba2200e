from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Accommodation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200)),
                ('base_price', models.DecimalField(
                    decimal_places=2, default=Decimal('0.00'), max_digits=10,
                    help_text='Cost per 7-day week before any discount',
                    validators=[django.core.validators.MinValueValidator(Decimal('0.00'))],
                )),
                ('type', models.CharField(
                    choices=[
                        ('room', 'Room'), ('dorm', 'Dorm'), ('cabin', 'Cabin'), ('tent', 'Tent'),
                        ('parking', 'Parking'), ('addon', 'Add-on'), ('test', 'Test'),
                    ],
                    default='room', max_length=20,
                )),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Accommodation',
                'verbose_name_plural': 'Accommodations',
                'ordering': ['title'],
            },
        ),
        migrations.CreateModel(
            name='DiscountCode',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=50, unique=True)),
                ('percentage_discount', models.PositiveSmallIntegerField(
                    help_text='Whole percent, 1-100',
                    validators=[
                        django.core.validators.MinValueValidator(1),
                        django.core.validators.MaxValueValidator(100),
                    ],
                )),
                ('applies_to', models.CharField(
                    choices=[
                        ('total', 'Total (accommodation + F&F)'),
                        ('accommodation', 'Accommodation only'),
                        ('food_facilities', 'Food & Facilities only'),
                    ],
                    default='total', max_length=20,
                )),
                ('description', models.TextField(blank=True, default='')),
                ('is_active', models.BooleanField(default=True)),
                ('deactivated_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Discount Code',
                'verbose_name_plural': 'Discount Codes',
                'ordering': ['code'],
            },
        ),
        migrations.CreateModel(
            name='Booking',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('check_in', models.DateField(blank=True, null=True)),
                ('check_out', models.DateField(blank=True, null=True)),
                ('status', models.CharField(
                    choices=[('pending', 'Pending'), ('confirmed', 'Confirmed'), ('cancelled', 'Cancelled')],
                    default='confirmed', max_length=20,
                )),
                ('total_price', models.DecimalField(
                    decimal_places=2, default=Decimal('0.00'), max_digits=10,
                    help_text='Amount actually charged, after credits',
                )),
                ('credits_used', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('accommodation_price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('food_contribution', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('seasonal_adjustment', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('duration_discount_percent', models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True)),
                ('discount_code_percent', models.DecimalField(blank=True, decimal_places=4, max_digits=6, null=True)),
                ('applied_discount_code', models.CharField(blank=True, max_length=50, null=True)),
                ('discount_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('breakdown_source', models.CharField(
                    blank=True, default='', max_length=20,
                    choices=[('quote', 'Forward quote'), ('reconciled', 'Reconciled from total')],
                )),
                ('reconciliation_flags', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('accommodation', models.ForeignKey(
                    blank=True, db_constraint=False, null=True,
                    on_delete=django.db.models.deletion.DO_NOTHING,
                    related_name='bookings', to='retreat.accommodation',
                )),
            ],
            options={
                'verbose_name': 'Booking',
                'verbose_name_plural': 'Bookings',
                'ordering': ['-created_at'],
            },
        ),
    ]
