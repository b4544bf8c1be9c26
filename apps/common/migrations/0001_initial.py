from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='RateLimitWindowRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('key', models.CharField(max_length=255, unique=True)),
                ('count', models.PositiveIntegerField(default=0)),
                ('reset_at_ms', models.BigIntegerField()),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Rate Limit Window',
                'verbose_name_plural': 'Rate Limit Windows',
                'db_table': 'rate_limit_windows',
                'indexes': [models.Index(fields=['reset_at_ms'], name='rate_limit_reset_at_idx')],
            },
        ),
    ]
