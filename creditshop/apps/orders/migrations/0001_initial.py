import uuid

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
            name='Order',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('order_number', models.CharField(max_length=100, unique=True)),
                ('category', models.CharField(choices=[('freefire', 'Free Fire'), ('tiktok', 'TikTok'), ('netflix', 'Netflix'), ('garena', 'Garena'), ('youtube', 'YouTube'), ('smilecoin', 'Smile Coin'), ('chatgpt', 'ChatGPT'), ('unipin', 'UniPin'), ('other', 'Other'), ('design', 'Design'), ('roblox', 'Roblox'), ('pubg', 'PUBG'), ('mobile_legends', 'Mobile Legends')], max_length=32)),
                ('product_name', models.CharField(blank=True, max_length=200)),
                ('package_name', models.CharField(max_length=200)),
                ('quantity', models.PositiveIntegerField(default=1)),
                ('price', models.DecimalField(decimal_places=6, max_digits=18)),
                ('details', models.JSONField(blank=True, default=dict)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('processing', 'Processing'), ('confirmed', 'Confirmed'), ('completed', 'Completed'), ('canceled', 'Canceled')], db_index=True, default='pending', max_length=20)),
                ('credits_deducted', models.DecimalField(decimal_places=6, max_digits=18)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('confirmed_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('canceled_at', models.DateTimeField(blank=True, null=True)),
                ('admin_remarks', models.TextField(blank=True)),
                ('cancellation_reason', models.TextField(blank=True)),
                ('transaction_id', models.CharField(blank=True, max_length=255)),
                ('failure_reason', models.TextField(blank=True)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('reviewed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reviewed_orders', to=settings.AUTH_USER_MODEL)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='orders', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'orders',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['user', '-created_at'], name='orders_user_created_idx'),
                    models.Index(fields=['category', 'status'], name='orders_category_status_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('price__gt', 0)), name='orders_price_positive'),
                    models.CheckConstraint(condition=models.Q(('quantity__gte', 1)), name='orders_quantity_positive'),
                ],
            },
        ),
    ]
