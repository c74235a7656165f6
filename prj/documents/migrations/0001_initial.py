import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('accounts', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Document',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('document_type', models.CharField(choices=[('admission_bill', 'Admission Bill'), ('twelfth_marksheet', 'Twelfth Marksheet'), ('graduation_marksheet', 'Graduation Marksheet'), ('other', 'Other')], max_length=30)),
                ('file_path', models.CharField(help_text='Path of the uploaded file inside the document storage.', max_length=255)),
                ('verified', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('profile', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='documents', to='accounts.profile')),
            ],
            options={
                'verbose_name': 'Document',
                'verbose_name_plural': 'Documents',
                'ordering': ['-created_at'],
                'permissions': [('verify_document', 'Can verify student documents')],
                'constraints': [models.UniqueConstraint(fields=('profile', 'document_type'), name='one_document_per_type_per_profile')],
            },
        ),
    ]
