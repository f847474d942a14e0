import json

import pytest
from django.contrib.auth.models import AnonymousUser, User
from django.db import DatabaseError
from django.test import RequestFactory

from conftest import make_valid_state
from membership import backends
from membership.backends import (
    AlumniIdConflict, BackendError, DjangoIdentity, DjangoObjectStorage, DjangoProfileDatabase,
    ProfileNotFound, SessionDraftStore, state_to_sections,
)
from membership.models import EventRegistration, Profile
from membership.services import _profile_row


@pytest.fixture
def member(db):
    return User.objects.create_user('asha', email='asha@example.com', password='pw-12345!',
                                    first_name='Asha', last_name='Kumar')


def insert(database, user, alumni_id='DTEAA-2015-0001', status='pending'):
    state = make_valid_state(str(user.pk))
    state.add_employee().company_name = 'Zoho'
    state.experience.is_open_to_work = True
    state.experience.open_to_work_details.technical_skills = 'Python'
    return database.insert_profile(_profile_row(state, alumni_id, '/media/receipts/r.png', '', status))


def test_identity_from_request_user(member):
    request = RequestFactory().get('/')
    request.user = member
    session = DjangoIdentity(request).get_current_session()
    assert session.user_id == str(member.pk)
    assert session.email == 'asha@example.com'
    assert session.display_name == 'Asha Kumar'

    request.user = AnonymousUser()
    assert DjangoIdentity(request).get_current_session() is None


def test_insert_and_fetch_round_trip(member):
    database = DjangoProfileDatabase()

    profile = insert(database, member)

    assert profile.alumni_id == 'DTEAA-2015-0001'
    assert profile.status == 'pending'
    assert profile.personal.first_name == 'Asha'
    assert profile.contact.present_address.city == 'Dindigul'
    assert profile.contact.same_as_present_address is True
    assert profile.experience.employee[0].company_name == 'Zoho'
    assert profile.experience.open_to_work_details.technical_skills == 'Python'
    assert profile.privacy.show_email is True
    assert profile.payment_receipt == '/media/receipts/r.png'


def test_duplicate_alumni_id_raises_conflict(member, django_user_model):
    database = DjangoProfileDatabase()
    other = django_user_model.objects.create_user('ravi', email='ravi@example.com')
    insert(database, member)

    with pytest.raises(AlumniIdConflict):
        insert(database, other)
    assert not Profile.objects.filter(user=other).exists()


def test_fetch_missing_profile_returns_none(member):
    assert DjangoProfileDatabase().fetch_profile(str(member.pk)) is None


def test_update_section_replaces_children(member):
    database = DjangoProfileDatabase()
    profile = insert(database, member)
    profile.remove_employee(profile.experience.employee[0].id)
    profile.add_employee().company_name = 'TCS'
    profile.add_employee().company_name = 'Infosys'

    database.update_section(str(member.pk), 'employee', state_to_sections(profile)['employee'])

    stored = database.fetch_profile(str(member.pk))
    assert [e.company_name for e in stored.experience.employee] == ['TCS', 'Infosys']


def test_update_section_rejects_unknown_section(member):
    database = DjangoProfileDatabase()
    insert(database, member)
    with pytest.raises(ValueError):
        database.update_section(str(member.pk), 'payments', {})


def test_replace_sections_writes_sections_and_row(member):
    database = DjangoProfileDatabase()
    profile = insert(database, member, status='rejected')
    profile.personal.specialization = 'Thermal'
    profile.add_employee().company_name = 'TCS'

    database.replace_sections(str(member.pk), state_to_sections(profile),
                              status='pending', payment_receipt='/media/receipts/new.png')

    stored = database.fetch_profile(str(member.pk))
    assert stored.personal.specialization == 'Thermal'
    assert [e.company_name for e in stored.experience.employee] == ['Zoho', 'TCS']
    assert stored.status == 'pending'
    assert stored.payment_receipt == '/media/receipts/new.png'


def test_replace_sections_rolls_back_on_failure(member, monkeypatch):
    database = DjangoProfileDatabase()
    profile = insert(database, member, status='rejected')
    profile.personal.first_name = 'Changed'
    write = backends._write_section

    def failing_write(target, section, data):
        if section == 'employee':
            raise DatabaseError('disk full')
        write(target, section, data)

    monkeypatch.setattr(backends, '_write_section', failing_write)

    with pytest.raises(BackendError):
        database.replace_sections(str(member.pk), state_to_sections(profile), status='pending')

    stored = database.fetch_profile(str(member.pk))
    assert stored.personal.first_name == 'Asha'
    assert stored.status == 'rejected'
    assert stored.payment_receipt == '/media/receipts/r.png'


def test_read_errors_become_backend_errors(member, monkeypatch):
    database = DjangoProfileDatabase()
    insert(database, member)

    def lost(*args, **kwargs):
        raise DatabaseError('connection lost')

    monkeypatch.setattr(DjangoProfileDatabase, '_get', lost)
    monkeypatch.setattr(backends, 'profile_to_state', lost)

    with pytest.raises(BackendError):
        database.fetch_profile(str(member.pk))
    with pytest.raises(BackendError):
        database.list_profiles()


def test_update_status_and_list(member):
    database = DjangoProfileDatabase()
    insert(database, member)

    database.update_status(str(member.pk), 'rejected', comments='Blurry receipt')

    stored = database.fetch_profile(str(member.pk))
    assert stored.status == 'rejected'
    assert stored.rejection_comments == 'Blurry receipt'
    assert [p.id for p in database.list_profiles(status='rejected')] == [str(member.pk)]
    assert database.list_profiles(status='verified') == []


def test_update_profile_missing_row(db):
    with pytest.raises(ProfileNotFound):
        DjangoProfileDatabase().update_profile('999', status='verified')


def test_update_profile_rejects_unknown_fields(member):
    with pytest.raises(ValueError):
        DjangoProfileDatabase().update_profile(str(member.pk), alumni_id='DTEAA-1-1')


def test_upsert_rsvp(member):
    database = DjangoProfileDatabase()
    row = {
        'userId': member.pk, 'alumniId': 'DTEAA-2015-0001', 'eventId': 'meet',
        'attending': True, 'mealPreference': 'Veg', 'totalParticipants': 2,
    }
    database.upsert_rsvp(row)
    database.upsert_rsvp(dict(row, attending=False, mealPreference=None, totalParticipants=1))

    rsvp = EventRegistration.objects.get(user=member, event_id='meet')
    assert EventRegistration.objects.count() == 1
    assert rsvp.attending is False
    assert rsvp.meal_preference is None


def test_object_storage_uses_requested_path(settings, tmp_path):
    storage = DjangoObjectStorage()

    url = storage.upload('receipts', '42/1700000000000.png', b'first')
    storage.upload('receipts', '42/1700000000000.png', b'second')

    saved = tmp_path / 'media' / 'receipts' / '42' / '1700000000000.png'
    assert url == '/media/receipts/42/1700000000000.png'
    assert saved.read_bytes() == b'second'

    storage.remove('receipts', ['42/1700000000000.png'])
    assert not saved.exists()


def test_session_draft_store_round_trip(valid_state):
    session = {}
    store = SessionDraftStore(session, key='draft')

    store.save(valid_state)
    assert json.loads(session['draft'])['personal']['firstName'] == 'Asha'
    assert store.load() == valid_state

    store.clear()
    assert store.load() is None


@pytest.mark.parametrize('raw', ['{not json', '[1, 2]', '"text"'])
def test_session_draft_store_ignores_broken_drafts(raw):
    store = SessionDraftStore({'draft': raw}, key='draft')
    assert store.load() is None
