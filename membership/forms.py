# membership/forms.py
import base64

from django import forms
from django.conf import settings
from django.contrib.auth.forms import UserCreationForm
from django.contrib.auth.models import User


RECEIPT_EXTENSIONS = ('jpg', 'jpeg', 'png', 'pdf')
PHOTO_EXTENSIONS = ('jpg', 'jpeg', 'png', 'webp')


def _extension(upload):
    name = getattr(upload, 'name', '') or ''
    return name.rsplit('.', 1)[-1].lower() if '.' in name else ''


class SignupForm(UserCreationForm):
    """Account creation; the membership profile itself comes from the wizard."""
    email = forms.EmailField(
        required=True,
        widget=forms.EmailInput(attrs={'class': 'form-control', 'placeholder': 'Email'})
    )
    first_name = forms.CharField(
        max_length=100, required=False,
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'First name'})
    )
    last_name = forms.CharField(
        max_length=100, required=False,
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Last name'})
    )

    class Meta(UserCreationForm.Meta):
        model = User
        fields = ('username', 'email', 'first_name', 'last_name')

    def clean_email(self):
        email = (self.cleaned_data.get('email') or '').strip().lower()
        if User.objects.filter(email__iexact=email).exists():
            raise forms.ValidationError('An account with this email already exists.')
        return email


class ReceiptUploadForm(forms.Form):
    # Presence is checked by submit_registration so the message matches the wizard's.
    receipt = forms.FileField(
        required=False,
        widget=forms.ClearableFileInput(attrs={'class': 'form-control', 'accept': 'image/*,application/pdf'})
    )

    def clean_receipt(self):
        receipt = self.cleaned_data.get('receipt')
        if not receipt:
            return None
        if _extension(receipt) not in RECEIPT_EXTENSIONS:
            raise forms.ValidationError('Upload the receipt as a JPG, PNG or PDF file.')
        max_mb = getattr(settings, 'DTEAA_RECEIPT_MAX_MB', 5)
        if receipt.size > max_mb * 1024 * 1024:
            raise forms.ValidationError(f'The receipt must be smaller than {max_mb} MB.')
        return receipt


class ProfilePhotoForm(forms.Form):
    photo = forms.ImageField(
        required=False,
        widget=forms.FileInput(attrs={'class': 'form-control', 'accept': 'image/*'})
    )

    def clean_photo(self):
        photo = self.cleaned_data.get('photo')
        if not photo:
            return None
        if _extension(photo) not in PHOTO_EXTENSIONS:
            raise forms.ValidationError('Upload the photo as a JPG, PNG or WEBP image.')
        if photo.size > 2 * 1024 * 1024:
            raise forms.ValidationError('The photo must be smaller than 2 MB.')
        return photo

    def as_data_url(self):
        """The uploaded photo as a data URL, kept in the draft until submit."""
        photo = self.cleaned_data.get('photo')
        if not photo:
            return ''
        content_type = getattr(photo, 'content_type', None) or 'image/jpeg'
        photo.seek(0)
        encoded = base64.b64encode(photo.read()).decode('ascii')
        return f"data:{content_type};base64,{encoded}"


class EventRSVPForm(forms.Form):
    ATTENDING_CHOICES = [
        ('yes', 'Yes, I will attend'),
        ('no', 'No, I cannot attend'),
    ]
    MEAL_CHOICES = [
        ('Veg', 'Veg'),
        ('Non-Veg', 'Non-Veg'),
    ]

    attending = forms.ChoiceField(
        choices=ATTENDING_CHOICES,
        required=False,
        widget=forms.RadioSelect(attrs={'class': 'form-check-input'})
    )
    meal_preference = forms.ChoiceField(
        choices=MEAL_CHOICES,
        required=False,
        initial='Veg',
        widget=forms.Select(attrs={'class': 'form-select'})
    )
    total_participants = forms.IntegerField(
        min_value=1, max_value=10, initial=1, required=False,
        widget=forms.NumberInput(attrs={'class': 'form-control'})
    )

    def clean(self):
        cleaned_data = super().clean()
        choice = cleaned_data.get('attending')
        # None means the member has not chosen yet.
        cleaned_data['attending'] = {'yes': True, 'no': False}.get(choice)
        if cleaned_data['attending']:
            cleaned_data['meal_preference'] = cleaned_data.get('meal_preference') or 'Veg'
            cleaned_data['total_participants'] = cleaned_data.get('total_participants') or 1
        return cleaned_data


class DirectorySearchForm(forms.Form):
    q = forms.CharField(
        required=False,
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Search by name or company'})
    )


class AdminFilterForm(forms.Form):
    STATUS_CHOICES = [
        ('all', 'All'),
        ('pending', 'Pending'),
        ('verified', 'Verified'),
    ]

    q = forms.CharField(
        required=False,
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Name, email or alumni ID'})
    )
    status = forms.ChoiceField(
        choices=STATUS_CHOICES,
        required=False,
        widget=forms.Select(attrs={'class': 'form-select'})
    )

    def clean_status(self):
        return self.cleaned_data.get('status') or 'all'


class RejectionForm(forms.Form):
    comments = forms.CharField(
        widget=forms.Textarea(attrs={
            'class': 'form-control',
            'rows': 3,
            'placeholder': 'Tell the member what needs to be fixed',
        })
    )

    def clean_comments(self):
        comments = (self.cleaned_data.get('comments') or '').strip()
        if not comments:
            raise forms.ValidationError('Please give a reason for the rejection.')
        return comments
