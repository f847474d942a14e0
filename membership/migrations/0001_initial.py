import django.core.validators
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
            name='Profile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('alumni_id', models.CharField(max_length=20, unique=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('verified', 'Verified'), ('rejected', 'Rejected')], default='pending', max_length=20)),
                ('rejection_comments', models.TextField(blank=True, default='')),
                ('payment_receipt', models.CharField(blank=True, default='', max_length=500)),
                ('profile_photo', models.CharField(blank=True, default='', max_length=500)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='membership_profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='PersonalDetails',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('first_name', models.CharField(max_length=100)),
                ('last_name', models.CharField(max_length=100)),
                ('pass_out_year', models.CharField(max_length=4)),
                ('dob', models.CharField(max_length=10)),
                ('blood_group', models.CharField(choices=[('A+', 'A+'), ('A-', 'A-'), ('B+', 'B+'), ('B-', 'B-'), ('AB+', 'AB+'), ('AB-', 'AB-'), ('O+', 'O+'), ('O-', 'O-')], max_length=3)),
                ('email', models.EmailField(max_length=254)),
                ('alt_email', models.CharField(blank=True, default='', max_length=254)),
                ('highest_qualification', models.CharField(max_length=200)),
                ('specialization', models.CharField(blank=True, default='', max_length=200)),
                ('profile', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='personal', to='membership.profile')),
            ],
            options={
                'verbose_name_plural': 'Personal details',
            },
        ),
        migrations.CreateModel(
            name='ContactDetails',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('present_city', models.CharField(max_length=100)),
                ('present_state', models.CharField(max_length=100)),
                ('present_country', models.CharField(max_length=100)),
                ('present_pincode', models.CharField(max_length=6)),
                ('permanent_city', models.CharField(blank=True, default='', max_length=100)),
                ('permanent_state', models.CharField(blank=True, default='', max_length=100)),
                ('permanent_country', models.CharField(blank=True, default='', max_length=100)),
                ('permanent_pincode', models.CharField(blank=True, default='', max_length=6)),
                ('same_as_present_address', models.BooleanField(default=False)),
                ('mobile', models.CharField(max_length=16, validators=[django.core.validators.RegexValidator(message="Mobile number must be 10 to 15 digits with an optional leading '+'.", regex='^\\+?[0-9]{10,15}$')])),
                ('telephone', models.CharField(blank=True, default='', max_length=20)),
                ('profile', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='contact', to='membership.profile')),
            ],
            options={
                'verbose_name_plural': 'Contact details',
            },
        ),
        migrations.CreateModel(
            name='EmployeeExperience',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('entry_id', models.CharField(max_length=40)),
                ('position', models.PositiveIntegerField(default=0)),
                ('company_name', models.CharField(blank=True, default='', max_length=200)),
                ('designation', models.CharField(blank=True, default='', max_length=200)),
                ('start_date', models.CharField(blank=True, default='', max_length=10)),
                ('end_date', models.CharField(blank=True, default='', max_length=10)),
                ('is_current_employer', models.BooleanField(default=False)),
                ('city', models.CharField(blank=True, default='', max_length=100)),
                ('state', models.CharField(blank=True, default='', max_length=100)),
                ('country', models.CharField(blank=True, default='', max_length=100)),
                ('profile', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='employee_experiences', to='membership.profile')),
            ],
            options={
                'ordering': ['position'],
            },
        ),
        migrations.CreateModel(
            name='EntrepreneurExperience',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('entry_id', models.CharField(max_length=40)),
                ('position', models.PositiveIntegerField(default=0)),
                ('company_name', models.CharField(blank=True, default='', max_length=200)),
                ('nature_of_business', models.CharField(blank=True, default='', max_length=200)),
                ('city', models.CharField(blank=True, default='', max_length=100)),
                ('state', models.CharField(blank=True, default='', max_length=100)),
                ('country', models.CharField(blank=True, default='', max_length=100)),
                ('profile', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='entrepreneur_experiences', to='membership.profile')),
            ],
            options={
                'ordering': ['position'],
            },
        ),
        migrations.CreateModel(
            name='OpenToWork',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('is_open_to_work', models.BooleanField(default=False)),
                ('technical_skills', models.TextField(blank=True, default='')),
                ('certifications', models.TextField(blank=True, default='')),
                ('soft_skills', models.TextField(blank=True, default='')),
                ('other', models.TextField(blank=True, default='')),
                ('profile', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='open_to_work', to='membership.profile')),
            ],
            options={
                'verbose_name_plural': 'Open to work',
            },
        ),
        migrations.CreateModel(
            name='PrivacySettings',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('show_email', models.BooleanField(default=True)),
                ('show_phone', models.BooleanField(default=False)),
                ('show_company', models.BooleanField(default=False)),
                ('show_location', models.BooleanField(default=False)),
                ('profile', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='privacy', to='membership.profile')),
            ],
            options={
                'verbose_name_plural': 'Privacy settings',
            },
        ),
        migrations.CreateModel(
            name='EventRegistration',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('alumni_id', models.CharField(max_length=20)),
                ('event_id', models.CharField(max_length=100)),
                ('attending', models.BooleanField()),
                ('meal_preference', models.CharField(blank=True, choices=[('Veg', 'Veg'), ('Non-Veg', 'Non-Veg')], max_length=10, null=True)),
                ('total_participants', models.PositiveIntegerField(default=1)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='event_registrations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'constraints': [models.UniqueConstraint(fields=('user', 'event_id'), name='unique_rsvp_per_event')],
            },
        ),
        migrations.CreateModel(
            name='AdminUser',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, to=settings.AUTH_USER_MODEL)),
            ],
        ),
    ]
