from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('kind', models.CharField(choices=[('application_submitted', 'Application submitted'), ('referral_application', 'Referral application'), ('application_status_changed', 'Application status changed'), ('referral_hired', 'Referral hired'), ('referral_payment_paid', 'Referral payment paid')], db_index=True, max_length=40)),
                ('title', models.CharField(max_length=255)),
                ('body', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('UNREAD', 'Unread'), ('READ', 'Read')], db_index=True, default='UNREAD', max_length=20)),
                ('data', models.JSONField(blank=True, help_text='Additional payload for the frontend', null=True)),
                ('read_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='notifications', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'notifications',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['user', 'status'], name='notifications_user_status_idx'),
                    models.Index(fields=['created_at'], name='notifications_created_idx'),
                ],
            },
        ),
    ]
