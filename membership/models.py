from django.db import models
from django.contrib.auth.models import User
from django.core.validators import RegexValidator


BLOOD_GROUP_CHOICES = [(bg, bg) for bg in ['A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-']]


class Profile(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('verified', 'Verified'),
        ('rejected', 'Rejected'),
    ]

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='membership_profile')
    # Assigned once at first successful registration: DTEAA-<year>-<NNNN>
    alumni_id = models.CharField(max_length=20, unique=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    rejection_comments = models.TextField(blank=True, default='')
    payment_receipt = models.CharField(max_length=500, blank=True, default='')
    profile_photo = models.CharField(max_length=500, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.alumni_id


class PersonalDetails(models.Model):
    profile = models.OneToOneField(Profile, on_delete=models.CASCADE, related_name='personal')
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    pass_out_year = models.CharField(max_length=4)
    dob = models.CharField(max_length=10)
    blood_group = models.CharField(max_length=3, choices=BLOOD_GROUP_CHOICES)
    email = models.EmailField()
    alt_email = models.CharField(max_length=254, blank=True, default='')
    highest_qualification = models.CharField(max_length=200)
    specialization = models.CharField(max_length=200, blank=True, default='')

    class Meta:
        verbose_name_plural = "Personal details"

    def __str__(self):
        return f"{self.first_name} {self.last_name}".strip()


class ContactDetails(models.Model):
    phone_regex = RegexValidator(
        regex=r'^\+?[0-9]{10,15}$',
        message="Mobile number must be 10 to 15 digits with an optional leading '+'."
    )

    profile = models.OneToOneField(Profile, on_delete=models.CASCADE, related_name='contact')
    present_city = models.CharField(max_length=100)
    present_state = models.CharField(max_length=100)
    present_country = models.CharField(max_length=100)
    present_pincode = models.CharField(max_length=6)
    permanent_city = models.CharField(max_length=100, blank=True, default='')
    permanent_state = models.CharField(max_length=100, blank=True, default='')
    permanent_country = models.CharField(max_length=100, blank=True, default='')
    permanent_pincode = models.CharField(max_length=6, blank=True, default='')
    same_as_present_address = models.BooleanField(default=False)
    mobile = models.CharField(validators=[phone_regex], max_length=16)
    telephone = models.CharField(max_length=20, blank=True, default='')

    class Meta:
        verbose_name_plural = "Contact details"


class EmployeeExperience(models.Model):
    profile = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name='employee_experiences')
    entry_id = models.CharField(max_length=40)
    position = models.PositiveIntegerField(default=0)
    company_name = models.CharField(max_length=200, blank=True, default='')
    designation = models.CharField(max_length=200, blank=True, default='')
    start_date = models.CharField(max_length=10, blank=True, default='')
    end_date = models.CharField(max_length=10, blank=True, default='')
    is_current_employer = models.BooleanField(default=False)
    city = models.CharField(max_length=100, blank=True, default='')
    state = models.CharField(max_length=100, blank=True, default='')
    country = models.CharField(max_length=100, blank=True, default='')

    class Meta:
        ordering = ['position']


class EntrepreneurExperience(models.Model):
    profile = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name='entrepreneur_experiences')
    entry_id = models.CharField(max_length=40)
    position = models.PositiveIntegerField(default=0)
    company_name = models.CharField(max_length=200, blank=True, default='')
    nature_of_business = models.CharField(max_length=200, blank=True, default='')
    city = models.CharField(max_length=100, blank=True, default='')
    state = models.CharField(max_length=100, blank=True, default='')
    country = models.CharField(max_length=100, blank=True, default='')

    class Meta:
        ordering = ['position']


class OpenToWork(models.Model):
    profile = models.OneToOneField(Profile, on_delete=models.CASCADE, related_name='open_to_work')
    is_open_to_work = models.BooleanField(default=False)
    technical_skills = models.TextField(blank=True, default='')
    certifications = models.TextField(blank=True, default='')
    soft_skills = models.TextField(blank=True, default='')
    other = models.TextField(blank=True, default='')

    class Meta:
        verbose_name_plural = "Open to work"


class PrivacySettings(models.Model):
    profile = models.OneToOneField(Profile, on_delete=models.CASCADE, related_name='privacy')
    show_email = models.BooleanField(default=True)
    show_phone = models.BooleanField(default=False)
    show_company = models.BooleanField(default=False)
    show_location = models.BooleanField(default=False)

    class Meta:
        verbose_name_plural = "Privacy settings"


class EventRegistration(models.Model):
    MEAL_CHOICES = [
        ('Veg', 'Veg'),
        ('Non-Veg', 'Non-Veg'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='event_registrations')
    alumni_id = models.CharField(max_length=20)
    event_id = models.CharField(max_length=100)
    attending = models.BooleanField()
    meal_preference = models.CharField(max_length=10, choices=MEAL_CHOICES, null=True, blank=True)
    total_participants = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['user', 'event_id'], name='unique_rsvp_per_event'),
        ]

    def __str__(self):
        return f"RSVP {self.alumni_id} for {self.event_id}"


class AdminUser(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Admin: {self.user.username}"
