import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='EcoPointsAccount',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('user_id', models.CharField(max_length=128, unique=True)),
                ('total_points', models.PositiveBigIntegerField(default=0)),
                ('version', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Eco-Points Account',
                'verbose_name_plural': 'Eco-Points Accounts',
                'db_table': 'eco_points_accounts',
            },
        ),
        migrations.CreateModel(
            name='SAFCertificate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('certificate_id', models.CharField(max_length=64, unique=True)),
                ('user_id', models.CharField(db_index=True, max_length=128)),
                ('entry_id', models.CharField(max_length=64)),
                ('status', models.CharField(
                    choices=[('pending', 'Pending'), ('verified', 'Verified'), ('rejected', 'Rejected')],
                    default='pending',
                    max_length=16,
                )),
                ('registry_name', models.CharField(max_length=100)),
                ('provider_name', models.CharField(max_length=100)),
                ('issued_at', models.DateTimeField()),
                ('updated_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'verbose_name': 'SAF Certificate',
                'verbose_name_plural': 'SAF Certificates',
                'db_table': 'saf_certificates',
            },
        ),
        migrations.CreateModel(
            name='EcoPointsEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sequence', models.PositiveIntegerField()),
                ('entry_id', models.CharField(max_length=64, unique=True)),
                ('action_type', models.CharField(
                    choices=[
                        ('saf_contribution', 'SAF Contribution'),
                        ('carbon_offset', 'Carbon Offset'),
                        ('sustainable_merchant', 'Sustainable Merchant'),
                        ('circularity_action', 'Circularity Action'),
                    ],
                    max_length=32,
                )),
                ('points_awarded', models.BigIntegerField()),
                ('description', models.CharField(blank=True, max_length=200)),
                ('attribution', models.JSONField(blank=True, null=True)),
                ('created_at', models.DateTimeField()),
                ('account', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='entries',
                    to='points.ecopointsaccount',
                )),
            ],
            options={
                'verbose_name': 'Eco-Points Entry',
                'verbose_name_plural': 'Eco-Points Entries',
                'db_table': 'eco_points_entries',
                'ordering': ['-sequence'],
                'unique_together': {('account', 'sequence')},
            },
        ),
    ]
