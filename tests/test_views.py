import json

import pytest
from django.contrib.auth.models import User
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse

from conftest import make_valid_state
from membership.backends import DjangoProfileDatabase
from membership.models import AdminUser, EventRegistration, Profile
from membership.services import _profile_row

pytestmark = pytest.mark.django_db


@pytest.fixture
def member(client):
    user = User.objects.create_user('asha', email='asha@example.com', password='pw-12345!',
                                    first_name='Asha', last_name='Kumar')
    client.force_login(user)
    return user


@pytest.fixture
def admin_user():
    user = User.objects.create_user('secretary', email='sec@example.com', password='pw-12345!')
    AdminUser.objects.create(user=user)
    return user


def seed(user, status='verified', alumni_id='DTEAA-2015-0001'):
    state = make_valid_state(str(user.pk))
    return DjangoProfileDatabase().insert_profile(_profile_row(state, alumni_id, '/media/r.png', '', status))


PERSONAL_POST = {
    'step': 'personal',
    'personal.first_name': 'Asha',
    'personal.last_name': 'Kumar',
    'personal.pass_out_year': '2015',
    'personal.dob': '1993-04-12',
    'personal.blood_group': 'O+',
    'personal.highest_qualification': 'B.E.',
    'personal.specialization': '',
    'personal.alt_email': '',
}

CONTACT_POST = {
    'step': 'contact',
    'contact.present_address.country': 'India',
    'contact.present_address.state': 'Tamil Nadu',
    'contact.present_address.city': 'Dindigul',
    'contact.present_address.pincode': '624001',
    'same_as_present_address': 'on',
    'contact.mobile': '9876543210',
    'contact.telephone': '',
}


def test_login_required(client):
    response = client.get(reverse('membership:register'))
    assert response.status_code == 302
    assert reverse('login') in response['Location']


def test_signup_logs_in_and_starts_registration(client):
    response = client.post(reverse('membership:signup'), {
        'username': 'meena', 'email': 'meena@example.com',
        'first_name': 'Meena', 'last_name': 'R',
        'password1': 'Str0ng-pass-99', 'password2': 'Str0ng-pass-99',
    })
    assert response.status_code == 302
    assert response['Location'] == reverse('membership:register')
    assert User.objects.filter(username='meena').exists()


def test_dashboard_redirects_to_register_without_profile(client, member):
    response = client.get(reverse('membership:dashboard'))
    assert response.status_code == 302
    assert response['Location'] == reverse('membership:register')


def test_register_get_prefills_name(client, member):
    response = client.get(reverse('membership:register'))
    assert response.status_code == 200
    assert response.context['step'].key == 'personal'
    assert response.context['state'].personal.first_name == 'Asha'


def test_next_blocked_shows_errors(client, member):
    response = client.post(reverse('membership:register'), dict(PERSONAL_POST, **{
        'personal.pass_out_year': '', 'action': 'next',
    }))
    assert response.status_code == 200
    assert response.context['step'].key == 'personal'
    assert response.context['errors']['personal.pass_out_year'] == 'This field is required.'


def test_blocked_next_without_edits_writes_no_draft(client, member):
    client.post(reverse('membership:register'), {'step': 'personal', 'action': 'next'})
    assert 'registration_draft' not in client.session


def test_field_edits_are_kept_in_draft(client, member):
    client.post(reverse('membership:register'), dict(PERSONAL_POST, **{
        'personal.pass_out_year': '', 'action': 'next',
    }))
    assert json.loads(client.session['registration_draft'])['personal']['dob'] == '1993-04-12'

    response = client.get(reverse('membership:register'))
    assert response.context['state'].personal.dob == '1993-04-12'


def test_full_registration_through_wizard(client, member):
    url = reverse('membership:register')

    response = client.post(url, dict(PERSONAL_POST, action='next'))
    assert response.context['step'].key == 'contact'

    response = client.post(url, dict(CONTACT_POST, action='next'))
    assert response.context['step'].key == 'experience'

    response = client.post(url, {'step': 'experience', 'action': 'add_employee'})
    entry = response.context['state'].experience.employee[0]
    response = client.post(url, {
        'step': 'experience',
        f'employee.{entry.id}.company_name': 'Zoho',
        f'employee.{entry.id}.designation': 'Engineer',
        f'employee.{entry.id}.is_current_employer': 'on',
        'action': 'next',
    })
    assert response.context['step'].key == 'review'

    response = client.post(url, {'step': 'review', 'action': 'next'})
    assert response.context['step'].key == 'payment'

    receipt = SimpleUploadedFile('receipt.png', b'\x89PNG fake', content_type='image/png')
    response = client.post(url, {'step': 'payment', 'action': 'submit', 'receipt': receipt})

    assert response.status_code == 302
    assert response['Location'] == reverse('membership:dashboard')
    profile = Profile.objects.get(user=member)
    assert profile.status == 'pending'
    assert profile.alumni_id.startswith('DTEAA-2015-')
    assert profile.payment_receipt.startswith('/media/receipts/')
    assert profile.employee_experiences.get().company_name == 'Zoho'
    assert 'registration_draft' not in client.session


def test_submit_without_receipt_stays_on_payment(client, member):
    url = reverse('membership:register')
    client.post(url, dict(PERSONAL_POST, action='next'))
    client.post(url, dict(CONTACT_POST, action='next'))
    client.post(url, {'step': 'experience', 'action': 'next'})
    client.post(url, {'step': 'review', 'action': 'next'})

    response = client.post(url, {'step': 'payment', 'action': 'submit'})

    assert response.status_code == 200
    assert response.context['step'].key == 'payment'
    assert response.context['errors']['receipt'] == 'A payment receipt is required to register.'
    assert not Profile.objects.exists()


def test_country_change_clears_state_and_city(client, member):
    url = reverse('membership:register')
    client.post(url, dict(PERSONAL_POST, action='next'))
    client.post(url, dict(CONTACT_POST, action='refresh'))

    response = client.post(url, dict(CONTACT_POST, **{
        'contact.present_address.country': 'Singapore', 'action': 'refresh',
    }))

    address = response.context['state'].contact.present_address
    assert (address.country, address.state, address.city) == ('Singapore', '', '')


def test_registered_member_is_sent_to_dashboard(client, member):
    seed(member, status='pending')
    response = client.get(reverse('membership:register'))
    assert response['Location'] == reverse('membership:dashboard')


def test_dashboard_shows_completeness(client, member):
    seed(member)
    response = client.get(reverse('membership:dashboard'))
    assert response.status_code == 200
    assert response.context['completeness'].percentage == 71
    assert b'DTEAA-2015-0001' in response.content


def test_edit_profile_saves(client, member):
    seed(member)
    url = reverse('membership:edit_profile')

    client.get(url)
    client.post(url, dict(PERSONAL_POST, **{'personal.specialization': 'Thermal', 'action': 'jump:privacy'}))
    response = client.post(url, {'step': 'personal', 'action': 'next'})
    assert response.context['step'].key == 'contact'

    response = client.post(url, dict(CONTACT_POST, action='jump:4'))
    assert response.context['step'].key == 'contact'

    for _ in range(3):
        response = client.post(url, {'action': 'next'})
    assert response.context['step'].key == 'review'

    response = client.post(url, {'step': 'review', 'action': 'save'})

    assert response.status_code == 302
    assert Profile.objects.get(user=member).personal.specialization == 'Thermal'


def test_directory_requires_verification(client, member):
    seed(member, status='pending')
    response = client.get(reverse('membership:directory'))
    assert response['Location'] == reverse('membership:dashboard')


def test_directory_lists_other_verified_members(client, member):
    seed(member)
    other = User.objects.create_user('ravi', email='ravi@example.com')
    seed(other, alumni_id='DTEAA-2012-0002')

    response = client.get(reverse('membership:directory'), {'q': 'asha'})

    assert response.status_code == 200
    assert [c['alumni_id'] for c in response.context['cards']] == ['DTEAA-2012-0002']


def test_event_rsvp(client, member, settings):
    seed(member)
    response = client.post(reverse('membership:event_rsvp'), {
        'attending': 'yes', 'meal_preference': 'Non-Veg', 'total_participants': '2',
    })
    assert response.status_code == 302
    rsvp = EventRegistration.objects.get(user=member, event_id=settings.DTEAA_EVENT_ID)
    assert rsvp.meal_preference == 'Non-Veg'
    assert rsvp.total_participants == 2


def test_event_rsvp_needs_a_choice(client, member):
    seed(member)
    client.post(reverse('membership:event_rsvp'), {'meal_preference': 'Veg'})
    assert not EventRegistration.objects.exists()


def test_admin_panel_denied_for_members(client, member):
    response = client.get(reverse('membership:admin_panel'))
    assert response['Location'] == reverse('membership:dashboard')


def test_admin_action_forbidden_for_members(client, member):
    seed(member, status='pending')
    response = client.post(reverse('membership:admin_action', args=[member.pk, 'verify']))
    assert response.status_code == 403
    assert Profile.objects.get(user=member).status == 'pending'


def test_admin_verifies_and_rejects(client, admin_user):
    applicant = User.objects.create_user('ravi', email='ravi@example.com')
    seed(applicant, status='pending')
    other = User.objects.create_user('kavya', email='kavya@example.com')
    seed(other, status='pending', alumni_id='DTEAA-2016-0002')
    client.force_login(admin_user)

    response = client.get(reverse('membership:admin_panel'))
    assert len(response.context['pending_requests']) == 2

    client.post(reverse('membership:admin_action', args=[applicant.pk, 'verify']))
    client.post(reverse('membership:admin_action', args=[other.pk, 'reject']), {'comments': 'Wrong amount'})

    assert Profile.objects.get(user=applicant).status == 'verified'
    rejected = Profile.objects.get(user=other)
    assert rejected.status == 'rejected'
    assert rejected.rejection_comments == 'Wrong amount'


def test_admin_reject_needs_comments(client, admin_user):
    applicant = User.objects.create_user('ravi', email='ravi@example.com')
    seed(applicant, status='pending')
    client.force_login(admin_user)

    response = client.post(reverse('membership:admin_action', args=[applicant.pk, 'reject']), {'comments': ' '})

    assert response['Location'] == reverse('membership:admin_review', kwargs={'user_id': applicant.pk})
    assert Profile.objects.get(user=applicant).status == 'pending'


def test_locations_endpoint(client):
    response = client.get(reverse('membership:locations'), {'country': 'India', 'state': 'Tamil Nadu'})
    data = response.json()
    assert 'India' in data['countries']
    assert 'Dindigul' in data['cities']
