import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('accounts', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='DonationRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('donation_type', models.CharField(choices=[('food', 'Food'), ('books', 'Books'), ('room_rent', 'Room Rent'), ('medical', 'Medical')], default='food', max_length=20)),
                ('amount', models.DecimalField(decimal_places=2, help_text='Total amount requested (INR).', max_digits=10)),
                ('remaining_amount', models.DecimalField(decimal_places=2, help_text='Amount still to be raised (INR).', max_digits=10)),
                ('status', models.CharField(choices=[('open', 'Open'), ('in_progress', 'In Progress'), ('approved', 'Approved'), ('completed', 'Completed')], default='open', max_length=20)),
                ('description', models.TextField(blank=True, help_text='What the money is for.')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='donation_requests', to='accounts.profile')),
            ],
            options={
                'verbose_name': 'Donation Request',
                'verbose_name_plural': 'Donation Requests',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['status', '-created_at'], name='donation_req_status_created')],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('amount__gt', 0)), name='donation_request_amount_positive'),
                    models.CheckConstraint(condition=models.Q(('remaining_amount__gte', 0), ('remaining_amount__lte', models.F('amount'))), name='donation_request_remaining_within_amount'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Donation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('donor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='donations', to=settings.AUTH_USER_MODEL)),
                ('request', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='donations', to='donations.donationrequest')),
            ],
            options={
                'verbose_name': 'Donation',
                'verbose_name_plural': 'Donations',
                'ordering': ['-created_at'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('amount__gt', 0)), name='donation_amount_positive'),
                ],
            },
        ),
    ]
