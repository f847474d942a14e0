import copy
import datetime

import pytest

from membership.backends import (
    AlumniIdConflict, BackendError, DraftStore, IdentityProvider, IdentitySession,
    ObjectStorage, PortalContext, ProfileDatabase, ProfileNotFound, StorageError,
)
from membership.profile_state import ProfileFormState
from membership.services import _profile_row
from membership.wizard import REGISTRATION_FLOW, StepController

TODAY = datetime.date(2025, 6, 1)


# ---------------------------------------------------------------------
# In-memory collaborators
# ---------------------------------------------------------------------
class FakeIdentity(IdentityProvider):
    def __init__(self, session=None):
        self.session = session

    def get_current_session(self):
        return self.session


class FakeStorage(ObjectStorage):
    def __init__(self, fail_buckets=(), fail_remove=False):
        self.fail_buckets = set(fail_buckets)
        self.fail_remove = fail_remove
        self.files = {}
        self.uploads = []
        self.removed = []

    def upload(self, bucket, path, blob):
        self.uploads.append((bucket, path))
        if bucket in self.fail_buckets:
            raise StorageError(f"{bucket} unavailable")
        self.files[(bucket, path)] = blob
        return f"https://storage.test/{bucket}/{path}"

    def remove(self, bucket, paths):
        self.removed.append((bucket, list(paths)))
        if self.fail_remove:
            raise StorageError("remove failed")
        for path in paths:
            self.files.pop((bucket, path), None)


class FakeDatabase(ProfileDatabase):
    def __init__(self):
        self.profiles = {}
        self.rsvps = {}
        self.insert_calls = []
        self.section_updates = []
        self.conflicts = 0
        self.fail_insert = False
        self.fail_update = False
        self.fail_on_section = None
        self.fail_fetch = False
        self.fail_rsvp = False

    def insert_profile(self, row):
        self.insert_calls.append(row)
        if self.conflicts:
            self.conflicts -= 1
            raise AlumniIdConflict(row['alumniId'])
        if self.fail_insert:
            raise BackendError("database unavailable")
        self.profiles[row['id']] = {
            'id': row['id'],
            'alumniId': row['alumniId'],
            'status': row['status'],
            'paymentReceipt': row['paymentReceipt'],
            'personal': dict(row['personal'], profilePhoto=row['profilePhoto']),
            'contact': row['contact'],
            'experience': {
                'employee': row['employee']['employee'],
                'entrepreneur': row['entrepreneur']['entrepreneur'],
                **row['open_to_work'],
            },
            'privacy': row['privacy'],
        }
        return self.fetch_profile(row['id'])

    def fetch_profile(self, user_id):
        if self.fail_fetch:
            raise BackendError("database unavailable")
        data = self.profiles.get(user_id)
        return ProfileFormState.from_dict(copy.deepcopy(data)) if data else None

    def list_profiles(self, status=None):
        return [
            self.fetch_profile(uid) for uid, data in self.profiles.items()
            if status is None or data['status'] == status
        ]

    def update_section(self, user_id, section, data):
        self.section_updates.append(section)
        if self.fail_update:
            raise BackendError("database unavailable")
        profile = self.profiles[user_id]
        if section in ('personal', 'contact', 'privacy'):
            photo = profile['personal'].get('profilePhoto', '')
            profile[section] = copy.deepcopy(data)
            if section == 'personal':
                profile['personal']['profilePhoto'] = photo
        elif section in ('employee', 'entrepreneur'):
            profile['experience'][section] = copy.deepcopy(data[section])
        elif section == 'open_to_work':
            profile['experience'].update(copy.deepcopy(data))

    def replace_sections(self, user_id, sections, **profile_fields):
        if user_id not in self.profiles:
            raise ProfileNotFound(user_id)
        snapshot = copy.deepcopy(self.profiles[user_id])
        try:
            for section, data in sections.items():
                if section == self.fail_on_section:
                    raise BackendError(f"{section} write failed")
                self.update_section(user_id, section, data)
            self.update_profile(user_id, **profile_fields)
        except BackendError:
            self.profiles[user_id] = snapshot
            raise

    def update_profile(self, user_id, **fields):
        if user_id not in self.profiles:
            raise ProfileNotFound(user_id)
        profile = self.profiles[user_id]
        keys = {'payment_receipt': 'paymentReceipt', 'status': 'status', 'rejection_comments': 'rejectionComments'}
        for name, value in fields.items():
            if name == 'profile_photo':
                profile['personal']['profilePhoto'] = value
            else:
                profile[keys[name]] = value

    def update_status(self, user_id, status, comments=''):
        self.update_profile(user_id, status=status, rejection_comments=comments)

    def upsert_rsvp(self, row):
        if self.fail_rsvp:
            raise BackendError("database unavailable")
        self.rsvps[(row['userId'], row['eventId'])] = dict(row)
        return row


class FakeDrafts(DraftStore):
    def __init__(self):
        self.data = None
        self.saves = 0
        self.cleared = False

    def save(self, state):
        self.saves += 1
        self.data = copy.deepcopy(state.to_dict())

    def load(self):
        return ProfileFormState.from_dict(copy.deepcopy(self.data)) if self.data else None

    def clear(self):
        self.cleared = True
        self.data = None


class FakeNotifier:
    def __init__(self):
        self.verified = []

    def member_verified(self, profile):
        self.verified.append(profile.alumni_id)
        return {'email': True, 'sms': True}


class Actor:
    """Stand-in for request.user in service-level admin checks."""

    def __init__(self, staff=True):
        self.is_authenticated = True
        self.is_superuser = False
        self.is_staff = staff


# ---------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------
def make_valid_state(user_id='42'):
    state = ProfileFormState.empty()
    state.id = user_id
    p = state.personal
    p.first_name = 'Asha'
    p.last_name = 'Kumar'
    p.pass_out_year = '2015'
    p.dob = '1993-04-12'
    p.blood_group = 'O+'
    p.email = 'asha@example.com'
    p.highest_qualification = 'B.E.'
    a = state.contact.present_address
    a.country = 'India'
    a.state = 'Tamil Nadu'
    a.city = 'Dindigul'
    a.pincode = '624001'
    state.set_same_as_present_address(True)
    state.contact.mobile = '9876543210'
    return state


def seed_profile(database, user_id, alumni_id, status='verified', **personal):
    state = make_valid_state(user_id)
    for attr, value in personal.items():
        setattr(state.personal, attr, value)
    database.insert_profile(_profile_row(state, alumni_id, 'https://storage.test/receipt', '', status))
    return database.fetch_profile(user_id)


# ---------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------
@pytest.fixture(autouse=True)
def portal_settings(settings, tmp_path):
    settings.SECURE_SSL_REDIRECT = False
    settings.MEDIA_ROOT = tmp_path / 'media'
    settings.MAILTRAP_API_KEY = ''
    settings.TWO_FACTOR_API_KEY = ''
    settings.DTEAA_ALUMNI_ID_ATTEMPTS = 15
    settings.DTEAA_EVENT_ID = 'alumni-meet-test'
    settings.STORAGES = {
        'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
        'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
    }
    return settings


@pytest.fixture
def identity_session():
    return IdentitySession(user_id='42', email='asha@example.com', display_name='Asha Devi Kumar')


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def database():
    return FakeDatabase()


@pytest.fixture
def drafts():
    return FakeDrafts()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def ctx(identity_session, storage, database, drafts, notifier):
    return PortalContext(
        identity=FakeIdentity(identity_session),
        storage=storage,
        database=database,
        drafts=drafts,
        notifier=notifier,
    )


@pytest.fixture
def valid_state():
    return make_valid_state()


@pytest.fixture
def payment_controller(valid_state, drafts):
    return StepController(REGISTRATION_FLOW, valid_state, draft_store=drafts,
                          current=REGISTRATION_FLOW.last_index, today=TODAY)
