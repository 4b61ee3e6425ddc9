import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('orders', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='FulfillmentAttempt',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('product_id', models.PositiveIntegerField(blank=True, null=True)),
                ('uid', models.CharField(max_length=100)),
                ('zone_id', models.CharField(max_length=100)),
                ('display_name', models.CharField(blank=True, max_length=255)),
                ('status', models.CharField(choices=[('idle', 'Idle'), ('processing', 'Processing'), ('completed', 'Completed'), ('failed', 'Failed')], db_index=True, default='idle', max_length=20)),
                ('verification_response', models.JSONField(blank=True, null=True)),
                ('order_response', models.JSONField(blank=True, null=True)),
                ('transaction_id', models.CharField(blank=True, max_length=255)),
                ('retry_count', models.PositiveIntegerField(default=0)),
                ('error_code', models.CharField(blank=True, max_length=64)),
                ('error_message', models.TextField(blank=True)),
                ('verification_sent_at', models.DateTimeField(blank=True, null=True)),
                ('verification_completed_at', models.DateTimeField(blank=True, null=True)),
                ('order_sent_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('failed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('order', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='fulfillment_attempt', to='orders.order')),
            ],
            options={
                'db_table': 'fulfillment_attempts',
                'ordering': ['-created_at'],
            },
        ),
    ]
