import django.core.validators
import re
import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('correlation_id', models.CharField(error_messages={'blank': 'Correlation ID is required', 'null': 'Correlation ID is required'}, max_length=36, unique=True, validators=[django.core.validators.RegexValidator(re.compile('\\A[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\\Z', re.IGNORECASE), message='Correlation ID must be a valid UUID')])),
                ('amount_in_cents', models.BigIntegerField(error_messages={'blank': 'Amount is required', 'null': 'Amount is required'}, validators=[django.core.validators.MinValueValidator(1, message='Amount must be greater than 0')])),
                ('payment_service', models.CharField(blank=True, choices=[('default', 'Default'), ('fallback', 'Fallback')], max_length=20, null=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('processing', 'Processing'), ('completed', 'Completed'), ('failed', 'Failed')], db_index=True, default='pending', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['-created_at'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('amount_in_cents__gt', 0)), name='payment_amount_positive'),
                    models.CheckConstraint(condition=models.Q(models.Q(('payment_service__isnull', False), ('status', 'completed')), models.Q(models.Q(('status', 'completed'), _negated=True), ('payment_service__isnull', True)), _connector='OR'), name='payment_service_set_iff_completed'),
                ],
            },
        ),
    ]
