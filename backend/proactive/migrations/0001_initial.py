import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


RECIPE_STATUS_CHOICES = [
    ('pending_review_portal', 'Pending Review Portal'),
    ('pending_validation', 'Pending Validation'),
    ('validated', 'Validated'),
    ('sent_to_external', 'Sent To External'),
    ('preparation', 'Preparation'),
    ('quality_control', 'Quality Control'),
    ('received_at_skol', 'Received At Skol'),
    ('ready_for_pickup', 'Ready For Pickup'),
    ('dispensed', 'Dispensed'),
    ('rejected', 'Rejected'),
    ('cancelled', 'Cancelled'),
    ('archived', 'Archived'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Patient',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200)),
                ('rut', models.CharField(blank=True, default='', max_length=12)),
                ('is_chronic', models.BooleanField(default=False)),
                ('locale', models.CharField(blank=True, default='', max_length=10)),
                ('proactive_status', models.CharField(
                    choices=[('OK', 'Ok'), ('ATTENTION', 'Attention'), ('URGENT', 'Urgent')],
                    default='OK', max_length=20,
                )),
                ('action_needed', models.CharField(
                    choices=[
                        ('NONE', 'None'),
                        ('CREATE_NEW_RECIPE', 'Create New Recipe'),
                        ('REPREPARE_CYCLE', 'Reprepare Cycle'),
                    ],
                    default='NONE', max_length=30,
                )),
                ('proactive_message', models.TextField(blank=True, default='')),
                ('proactive_evaluated_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'patients',
            },
        ),
        migrations.CreateModel(
            name='Recipe',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('status', models.CharField(choices=RECIPE_STATUS_CHOICES, default='pending_validation', max_length=30)),
                ('due_date', models.DateField(blank=True, null=True)),
                ('is_magistral', models.BooleanField(default=True)),
                ('items', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('patient', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='recipes',
                    to='proactive.patient',
                )),
            ],
            options={
                'db_table': 'recipes',
                'ordering': ['created_at', 'id'],
            },
        ),
        migrations.CreateModel(
            name='RecipeAuditEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=RECIPE_STATUS_CHOICES, max_length=30)),
                ('date', models.DateTimeField()),
                ('recipe', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='audit_trail',
                    to='proactive.recipe',
                )),
            ],
            options={
                'db_table': 'recipe_audit_entries',
                'ordering': ['id'],
            },
        ),
    ]
