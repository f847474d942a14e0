"""
External collaborators used by the membership services.

Services never reach for a global client: they receive a PortalContext
holding the identity, storage and database implementations. The Django
implementations live here; tests pass in-memory fakes instead.
"""
import json
import logging
from dataclasses import dataclass, field

from django.core.exceptions import ObjectDoesNotExist, SuspiciousOperation
from django.core.files.base import ContentFile, File
from django.core.files.storage import default_storage
from django.db import DatabaseError, IntegrityError, transaction

from .locations import LocationDirectory
from .notifications import MembershipNotifier
from .models import (
    ContactDetails, EmployeeExperience, EntrepreneurExperience, EventRegistration,
    OpenToWork, PersonalDetails, PrivacySettings, Profile,
)
from .profile_state import ProfileFormState

logger = logging.getLogger(__name__)


# -------------------------------
# ERRORS
# -------------------------------
class BackendError(Exception):
    """An identity, storage or database call did not complete."""


class StorageError(BackendError):
    pass


class AlumniIdConflict(BackendError):
    """The generated alumni id is already taken."""


class ProfileNotFound(BackendError):
    pass


# -------------------------------
# CONTRACTS
# -------------------------------
@dataclass
class IdentitySession:
    user_id: str
    email: str = ''
    display_name: str = ''


class IdentityProvider:
    def get_current_session(self):
        """Return an IdentitySession or None when nobody is signed in."""
        raise NotImplementedError


class ObjectStorage:
    def upload(self, bucket, path, blob):
        """Store ``blob`` at ``bucket/path`` and return its public URL."""
        raise NotImplementedError

    def remove(self, bucket, paths):
        raise NotImplementedError


SECTIONS = ('personal', 'contact', 'employee', 'entrepreneur', 'open_to_work', 'privacy')


class ProfileDatabase:
    def insert_profile(self, row):
        """Insert a new profile row; raises AlumniIdConflict on a taken id."""
        raise NotImplementedError

    def fetch_profile(self, user_id):
        raise NotImplementedError

    def list_profiles(self, status=None):
        raise NotImplementedError

    def update_section(self, user_id, section, data):
        """Replace one child section (delete all, then insert all)."""
        raise NotImplementedError

    def replace_sections(self, user_id, sections, **profile_fields):
        """Replace several sections and patch the profile row as one unit: all or nothing."""
        raise NotImplementedError

    def update_profile(self, user_id, **fields):
        raise NotImplementedError

    def update_status(self, user_id, status, comments=''):
        raise NotImplementedError

    def upsert_rsvp(self, row):
        raise NotImplementedError


class DraftStore:
    def save(self, state):
        raise NotImplementedError

    def load(self):
        raise NotImplementedError

    def clear(self):
        raise NotImplementedError


@dataclass
class PortalContext:
    identity: IdentityProvider
    storage: ObjectStorage
    database: ProfileDatabase
    drafts: DraftStore = None
    notifier: object = None
    locations: LocationDirectory = field(default_factory=LocationDirectory)


# -------------------------------
# DJANGO IMPLEMENTATIONS
# -------------------------------
class DjangoIdentity(IdentityProvider):
    def __init__(self, request):
        self.request = request

    def get_current_session(self):
        user = getattr(self.request, 'user', None)
        if user is None or not user.is_authenticated:
            return None
        return IdentitySession(
            user_id=str(user.pk),
            email=user.email or '',
            display_name=user.get_full_name() or '',
        )


class DjangoObjectStorage(ObjectStorage):
    """Buckets are top-level folders inside the configured file storage."""

    def __init__(self, storage=None):
        self.storage = storage or default_storage

    def upload(self, bucket, path, blob):
        name = f"{bucket}/{path}"
        content = blob if isinstance(blob, File) else ContentFile(blob)
        try:
            # Overwrite so the saved name stays equal to the requested path.
            if self.storage.exists(name):
                self.storage.delete(name)
            saved = self.storage.save(name, content)
            return self.storage.url(saved)
        except (OSError, SuspiciousOperation) as e:
            raise StorageError(f"upload to {name} failed: {e}") from e

    def remove(self, bucket, paths):
        for path in paths:
            try:
                self.storage.delete(f"{bucket}/{path}")
            except OSError as e:
                raise StorageError(f"remove {bucket}/{path} failed: {e}") from e


class DjangoProfileDatabase(ProfileDatabase):

    def _get(self, user_id):
        try:
            return Profile.objects.select_related(
                'personal', 'contact', 'open_to_work', 'privacy'
            ).get(user_id=user_id)
        except Profile.DoesNotExist:
            raise ProfileNotFound(f"no profile for user {user_id}")

    def insert_profile(self, row):
        user_id = row['id']
        try:
            with transaction.atomic():
                profile = Profile.objects.create(
                    user_id=user_id,
                    alumni_id=row['alumniId'],
                    status=row.get('status') or 'pending',
                    payment_receipt=row.get('paymentReceipt') or '',
                    profile_photo=row.get('profilePhoto') or '',
                )
                for section in SECTIONS:
                    _write_section(profile, section, row.get(section))
        except IntegrityError as e:
            if Profile.objects.filter(alumni_id=row['alumniId']).exclude(user_id=user_id).exists():
                raise AlumniIdConflict(row['alumniId']) from e
            raise BackendError(f"insert failed for user {user_id}: {e}") from e
        except DatabaseError as e:
            raise BackendError(f"insert failed for user {user_id}: {e}") from e
        return self.fetch_profile(user_id)

    def fetch_profile(self, user_id):
        try:
            return profile_to_state(self._get(user_id))
        except ProfileNotFound:
            return None
        except DatabaseError as e:
            raise BackendError(f"fetch failed for user {user_id}: {e}") from e

    def list_profiles(self, status=None):
        qs = Profile.objects.select_related('personal', 'contact', 'open_to_work', 'privacy')
        if status:
            qs = qs.filter(status=status)
        try:
            return [profile_to_state(p) for p in qs.order_by('-created_at')]
        except DatabaseError as e:
            raise BackendError(f"listing profiles failed: {e}") from e

    def update_section(self, user_id, section, data):
        if section not in SECTIONS:
            raise ValueError(f"unknown section: {section}")
        try:
            with transaction.atomic():
                _write_section(self._get(user_id), section, data)
        except DatabaseError as e:
            raise BackendError(f"update of {section} failed for user {user_id}: {e}") from e

    def replace_sections(self, user_id, sections, **profile_fields):
        unknown = set(sections) - set(SECTIONS)
        if unknown:
            raise ValueError(f"unknown sections: {sorted(unknown)}")
        try:
            with transaction.atomic():
                profile = self._get(user_id)
                for section in SECTIONS:
                    if section in sections:
                        _write_section(profile, section, sections[section])
                if profile_fields:
                    self.update_profile(user_id, **profile_fields)
        except DatabaseError as e:
            raise BackendError(f"saving profile failed for user {user_id}: {e}") from e

    def update_profile(self, user_id, **fields):
        allowed = {'payment_receipt', 'profile_photo', 'status', 'rejection_comments'}
        unknown = set(fields) - allowed
        if unknown:
            raise ValueError(f"not updatable: {sorted(unknown)}")
        try:
            updated = Profile.objects.filter(user_id=user_id).update(**fields)
        except DatabaseError as e:
            raise BackendError(f"update failed for user {user_id}: {e}") from e
        if not updated:
            raise ProfileNotFound(f"no profile for user {user_id}")

    def update_status(self, user_id, status, comments=''):
        self.update_profile(user_id, status=status, rejection_comments=comments)

    def upsert_rsvp(self, row):
        try:
            rsvp, _ = EventRegistration.objects.update_or_create(
                user_id=row['userId'],
                event_id=row['eventId'],
                defaults={
                    'alumni_id': row['alumniId'],
                    'attending': row['attending'],
                    'meal_preference': row.get('mealPreference'),
                    'total_participants': row.get('totalParticipants') or 1,
                },
            )
        except DatabaseError as e:
            raise BackendError(f"rsvp failed for user {row['userId']}: {e}") from e
        return rsvp


def _write_section(profile, section, data):
    """Delete-all-then-insert-all for one child table."""
    data = data or {}

    if section == 'personal':
        PersonalDetails.objects.filter(profile=profile).delete()
        PersonalDetails.objects.create(
            profile=profile,
            first_name=data.get('firstName', ''),
            last_name=data.get('lastName', ''),
            pass_out_year=data.get('passOutYear', ''),
            dob=data.get('dob', ''),
            blood_group=data.get('bloodGroup', ''),
            email=data.get('email', ''),
            alt_email=data.get('altEmail', ''),
            highest_qualification=data.get('highestQualification', ''),
            specialization=data.get('specialization', ''),
        )
    elif section == 'contact':
        present = data.get('presentAddress') or {}
        permanent = data.get('permanentAddress') or {}
        ContactDetails.objects.filter(profile=profile).delete()
        ContactDetails.objects.create(
            profile=profile,
            present_city=present.get('city', ''),
            present_state=present.get('state', ''),
            present_country=present.get('country', ''),
            present_pincode=present.get('pincode', ''),
            permanent_city=permanent.get('city', ''),
            permanent_state=permanent.get('state', ''),
            permanent_country=permanent.get('country', ''),
            permanent_pincode=permanent.get('pincode', ''),
            same_as_present_address=bool(data.get('sameAsPresentAddress')),
            mobile=data.get('mobile', ''),
            telephone=data.get('telephone', ''),
        )
    elif section == 'employee':
        EmployeeExperience.objects.filter(profile=profile).delete()
        EmployeeExperience.objects.bulk_create([
            EmployeeExperience(
                profile=profile,
                entry_id=e.get('id', ''),
                position=i,
                company_name=e.get('companyName', ''),
                designation=e.get('designation', ''),
                start_date=e.get('startDate', ''),
                end_date=e.get('endDate', ''),
                is_current_employer=bool(e.get('isCurrentEmployer')),
                city=e.get('city', ''),
                state=e.get('state', ''),
                country=e.get('country', ''),
            )
            for i, e in enumerate(data.get('employee') or [])
        ])
    elif section == 'entrepreneur':
        EntrepreneurExperience.objects.filter(profile=profile).delete()
        EntrepreneurExperience.objects.bulk_create([
            EntrepreneurExperience(
                profile=profile,
                entry_id=e.get('id', ''),
                position=i,
                company_name=e.get('companyName', ''),
                nature_of_business=e.get('natureOfBusiness', ''),
                city=e.get('city', ''),
                state=e.get('state', ''),
                country=e.get('country', ''),
            )
            for i, e in enumerate(data.get('entrepreneur') or [])
        ])
    elif section == 'open_to_work':
        details = data.get('openToWorkDetails') or {}
        OpenToWork.objects.filter(profile=profile).delete()
        OpenToWork.objects.create(
            profile=profile,
            is_open_to_work=bool(data.get('isOpenToWork')),
            technical_skills=details.get('technicalSkills', ''),
            certifications=details.get('certifications', ''),
            soft_skills=details.get('softSkills', ''),
            other=details.get('other', ''),
        )
    elif section == 'privacy':
        PrivacySettings.objects.filter(profile=profile).delete()
        PrivacySettings.objects.create(
            profile=profile,
            show_email=bool(data.get('showEmail', True)),
            show_phone=bool(data.get('showPhone')),
            show_company=bool(data.get('showCompany')),
            show_location=bool(data.get('showLocation')),
        )


def state_to_sections(state):
    """Split a ProfileFormState into the per-table payloads _write_section expects."""
    data = state.to_dict()
    experience = data['experience']
    return {
        'personal': data['personal'],
        'contact': data['contact'],
        'employee': {'employee': experience['employee']},
        'entrepreneur': {'entrepreneur': experience['entrepreneur']},
        'open_to_work': {
            'isOpenToWork': experience['isOpenToWork'],
            'openToWorkDetails': experience['openToWorkDetails'],
        },
        'privacy': data['privacy'],
    }


def _one(profile, name):
    # Reverse one-to-one accessors raise when the child row is missing.
    try:
        return getattr(profile, name)
    except ObjectDoesNotExist:
        return None


def profile_to_state(profile):
    personal = _one(profile, 'personal')
    contact = _one(profile, 'contact')
    open_to_work = _one(profile, 'open_to_work')
    privacy = _one(profile, 'privacy')

    data = {
        'id': str(profile.user_id),
        'alumniId': profile.alumni_id,
        'status': profile.status,
        'rejectionComments': profile.rejection_comments,
        'paymentReceipt': profile.payment_receipt,
        'personal': {},
        'contact': {},
        'experience': {
            'employee': [
                {
                    'id': e.entry_id,
                    'companyName': e.company_name,
                    'designation': e.designation,
                    'startDate': e.start_date,
                    'endDate': e.end_date,
                    'isCurrentEmployer': e.is_current_employer,
                    'city': e.city,
                    'state': e.state,
                    'country': e.country,
                }
                for e in profile.employee_experiences.all()
            ],
            'entrepreneur': [
                {
                    'id': e.entry_id,
                    'companyName': e.company_name,
                    'natureOfBusiness': e.nature_of_business,
                    'city': e.city,
                    'state': e.state,
                    'country': e.country,
                }
                for e in profile.entrepreneur_experiences.all()
            ],
        },
        'privacy': None,
    }
    if personal is not None:
        data['personal'] = {
            'firstName': personal.first_name,
            'lastName': personal.last_name,
            'passOutYear': personal.pass_out_year,
            'dob': personal.dob,
            'bloodGroup': personal.blood_group,
            'email': personal.email,
            'altEmail': personal.alt_email,
            'highestQualification': personal.highest_qualification,
            'specialization': personal.specialization,
        }
    data['personal']['profilePhoto'] = profile.profile_photo
    if contact is not None:
        data['contact'] = {
            'presentAddress': {
                'city': contact.present_city,
                'state': contact.present_state,
                'country': contact.present_country,
                'pincode': contact.present_pincode,
            },
            'permanentAddress': {
                'city': contact.permanent_city,
                'state': contact.permanent_state,
                'country': contact.permanent_country,
                'pincode': contact.permanent_pincode,
            },
            'sameAsPresentAddress': contact.same_as_present_address,
            'mobile': contact.mobile,
            'telephone': contact.telephone,
        }
    if open_to_work is not None:
        data['experience']['isOpenToWork'] = open_to_work.is_open_to_work
        data['experience']['openToWorkDetails'] = {
            'technicalSkills': open_to_work.technical_skills,
            'certifications': open_to_work.certifications,
            'softSkills': open_to_work.soft_skills,
            'other': open_to_work.other,
        }
    if privacy is not None:
        data['privacy'] = {
            'showEmail': privacy.show_email,
            'showPhone': privacy.show_phone,
            'showCompany': privacy.show_company,
            'showLocation': privacy.show_location,
        }
    return ProfileFormState.from_dict(data)


class SessionDraftStore(DraftStore):
    """Keeps an in-progress form in the Django session as JSON."""

    def __init__(self, session, key='membership_draft'):
        self.session = session
        self.key = key

    def save(self, state):
        self.session[self.key] = json.dumps(state.to_dict())

    def load(self):
        raw = self.session.get(self.key)
        if not raw:
            return None
        try:
            return ProfileFormState.from_dict(json.loads(raw))
        except (ValueError, TypeError, AttributeError):
            # A broken draft is dropped; the wizard starts empty.
            logger.debug("discarding unreadable draft under %s", self.key)
            return None

    def clear(self):
        self.session.pop(self.key, None)


def build_context(request, draft_key='membership_draft'):
    return PortalContext(
        identity=DjangoIdentity(request),
        storage=DjangoObjectStorage(),
        database=DjangoProfileDatabase(),
        drafts=SessionDraftStore(request.session, key=draft_key),
        notifier=MembershipNotifier(),
    )
