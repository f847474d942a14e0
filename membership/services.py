"""
Registration, profile editing, admin review, directory and event RSVPs.

Every function takes a PortalContext so the identity, storage and database
behind it can be swapped. External failures come back as BackendError and
are turned into an alert on the returned SubmissionResult; nothing here is
fatal to the request.
"""
import base64
import binascii
import logging
import random
import string
import time
from dataclasses import dataclass, field

from django.conf import settings
from django.core.exceptions import PermissionDenied

from .backends import AlumniIdConflict, BackendError, ProfileNotFound, state_to_sections
from .completeness import completeness
from .models import AdminUser
from .profile_state import (
    STATUS_PENDING, STATUS_REJECTED, STATUS_VERIFIED, ProfileFormState,
)
from .validation import CONTACT_FIELDS, PERSONAL_FIELDS, FieldPath, validate, validate_fields

logger = logging.getLogger(__name__)


RECEIPT_ERROR_KEY = 'receipt'

RECEIPT_REQUIRED_MSG = 'A payment receipt is required to register.'
LOGIN_REQUIRED_MSG = 'You must be logged in to register.'
YEAR_REQUIRED_MSG = 'Year of Pass Out is required to generate an ID.'
NOT_LAST_STEP_MSG = 'Please complete every step before submitting.'
ALREADY_REGISTERED_MSG = 'You have already registered. Your profile is awaiting verification.'
RECEIPT_UPLOAD_FAILED_MSG = 'Failed to upload payment receipt. Please try again.'
SAVE_FAILED_MSG = 'Failed to save your registration. Please try again or contact support.'
UPDATE_FAILED_MSG = 'Failed to update profile. Please try again.'
FIX_ERRORS_MSG = 'Please correct the highlighted fields before saving.'
ATTENDANCE_REQUIRED_MSG = 'Please confirm if you are attending.'
RSVP_FAILED_MSG = 'Failed to register. Please try again.'

RECEIPTS_BUCKET = 'receipts'
PHOTOS_BUCKET = 'photos'
DEFAULT_ALUMNI_ID_ATTEMPTS = 15


class InvalidStatusTransition(Exception):
    pass


@dataclass
class SubmissionResult:
    ok: bool
    profile: object = None
    alert: str = ''
    uploaded: list = field(default_factory=list)


def _fail(alert, uploaded=None):
    return SubmissionResult(ok=False, alert=alert, uploaded=uploaded or [])


# -------------------------------
# ALUMNI ID
# -------------------------------
def generate_alumni_id(pass_out_year, rng=None):
    """DTEAA-<year>-<4 random digits>."""
    rng = rng or random
    return f"DTEAA-{pass_out_year}-{''.join(rng.choices(string.digits, k=4))}"


def _now_ms():
    return int(time.time() * 1000)


def _decode_data_url(data_url):
    # data:image/jpeg;base64,....
    header, _, payload = data_url.partition(',')
    if not header.startswith('data:') or ';base64' not in header:
        raise ValueError('not a base64 data URL')
    return base64.b64decode(payload, validate=True)


def _upload_photo(ctx, user_id, photo, uploaded):
    """Upload a data-URL photo; returns the stored URL or '' when it could not be stored."""
    if not photo or not photo.startswith('data:'):
        return photo or ''
    path = f"{user_id}/profile_{_now_ms()}.jpg"
    try:
        url = ctx.storage.upload(PHOTOS_BUCKET, path, _decode_data_url(photo))
    except (BackendError, ValueError, binascii.Error):
        # A missing photo never blocks registration.
        logger.exception("[photo] upload failed for user %s", user_id)
        return ''
    uploaded.append((PHOTOS_BUCKET, path))
    return url


def _rollback_uploads(ctx, uploaded):
    """Best-effort compensating delete; its own failure is only logged."""
    by_bucket = {}
    for bucket, path in uploaded:
        by_bucket.setdefault(bucket, []).append(path)
    for bucket, paths in by_bucket.items():
        try:
            ctx.storage.remove(bucket, paths)
            logger.info("[rollback] removed %s from %s", paths, bucket)
        except BackendError:
            logger.exception("[rollback] cleanup of %s in %s failed", paths, bucket)


def _receipt_extension(receipt):
    name = getattr(receipt, 'name', '') or ''
    if '.' in name:
        return name.rsplit('.', 1)[-1].lower()
    return 'bin'


def _profile_row(state, alumni_id, receipt_url, photo_url, status=STATUS_PENDING):
    row = {
        'id': state.id,
        'alumniId': alumni_id,
        'status': status,
        'paymentReceipt': receipt_url,
        'profilePhoto': photo_url,
    }
    row.update(state_to_sections(state))
    row['personal'] = dict(row['personal'], profilePhoto=photo_url)
    return row


# -------------------------------
# REGISTRATION
# -------------------------------
def start_registration(ctx):
    """
    Return the ProfileFormState to register with, or None when the signed-in
    user already has a pending or verified profile.

    A rejected profile is reloaded so the member can fix and resubmit it;
    otherwise the session draft (or an empty form) is prefilled from identity.
    """
    session = ctx.identity.get_current_session()
    if session is None:
        return None
    existing = ctx.database.fetch_profile(session.user_id)
    if existing is not None:
        if existing.status != STATUS_REJECTED:
            return None
        draft = ctx.drafts.load() if ctx.drafts is not None else None
        return draft if draft is not None and draft.id == existing.id else existing

    state = ctx.drafts.load() if ctx.drafts is not None else None
    if state is None or (state.id and state.id != session.user_id):
        state = ProfileFormState.empty()
        state.prefill_from_identity(session)
    else:
        # Email always comes from identity.
        state.id = session.user_id
        state.personal.email = session.email or state.personal.email
    return state


def insert_with_fresh_id(database, state, receipt_url='', photo_url='', status=STATUS_PENDING):
    """Insert ``state`` under a newly generated alumni id, retrying on collisions."""
    attempts = getattr(settings, 'DTEAA_ALUMNI_ID_ATTEMPTS', DEFAULT_ALUMNI_ID_ATTEMPTS)
    for attempt in range(1, attempts + 1):
        alumni_id = generate_alumni_id(state.personal.pass_out_year)
        try:
            return database.insert_profile(_profile_row(state, alumni_id, receipt_url, photo_url, status))
        except AlumniIdConflict:
            logger.warning("[register] alumni id %s taken (attempt %d/%d)", alumni_id, attempt, attempts)
    raise BackendError(f"no free alumni id after {attempts} attempts")


def _resubmit(ctx, existing, state, receipt_url, photo_url):
    # The alumni id assigned at first registration is kept.
    ctx.database.replace_sections(
        existing.id,
        state_to_sections(state),
        payment_receipt=receipt_url,
        profile_photo=photo_url or existing.personal.profile_photo,
        status=STATUS_PENDING,
        rejection_comments='',
    )
    return ctx.database.fetch_profile(existing.id)


def submit_registration(ctx, controller, receipt):
    """
    Terminal action of the registration wizard (Payment step).

    Uploads the photo and receipt, inserts the profile with a fresh alumni id
    and, if anything after the upload fails, removes what was uploaded. The
    controller is left on the Payment step unless pass-out year is missing,
    in which case it is sent back to Personal.
    """
    state = controller.state
    controller.errors.pop(RECEIPT_ERROR_KEY, None)

    if not controller.is_last:
        return _fail(NOT_LAST_STEP_MSG)

    if receipt is None:
        controller.add_error(RECEIPT_ERROR_KEY, RECEIPT_REQUIRED_MSG)
        return _fail('')

    session = ctx.identity.get_current_session()
    if session is None:
        logger.error("[register] no session user")
        return _fail(LOGIN_REQUIRED_MSG)

    year_error = validate(FieldPath.PASS_OUT_YEAR, state.personal.pass_out_year, state, controller.today)
    if year_error:
        logger.error("[register] missing/invalid pass out year for user %s", session.user_id)
        controller.add_error(FieldPath.PASS_OUT_YEAR, year_error)
        controller.jump_to('personal')
        return _fail(YEAR_REQUIRED_MSG)

    try:
        existing = ctx.database.fetch_profile(session.user_id)
    except BackendError:
        logger.exception("[register] profile lookup failed for user %s", session.user_id)
        return _fail(SAVE_FAILED_MSG)
    if existing is not None and existing.status != STATUS_REJECTED:
        return _fail(ALREADY_REGISTERED_MSG)

    state.id = session.user_id
    state.personal.email = session.email or state.personal.email

    uploaded = []
    photo_url = _upload_photo(ctx, session.user_id, state.personal.profile_photo, uploaded)

    receipt_path = f"{session.user_id}/{_now_ms()}.{_receipt_extension(receipt)}"
    try:
        receipt_url = ctx.storage.upload(RECEIPTS_BUCKET, receipt_path, receipt)
    except BackendError:
        logger.exception("[register] receipt upload failed for user %s", session.user_id)
        _rollback_uploads(ctx, uploaded)
        return _fail(RECEIPT_UPLOAD_FAILED_MSG)
    uploaded.append((RECEIPTS_BUCKET, receipt_path))

    try:
        if existing is not None:
            profile = _resubmit(ctx, existing, state, receipt_url, photo_url)
        else:
            profile = insert_with_fresh_id(ctx.database, state, receipt_url, photo_url)
    except BackendError:
        logger.exception("[register] saving profile failed for user %s", session.user_id)
        _rollback_uploads(ctx, uploaded)
        return _fail(SAVE_FAILED_MSG, uploaded)

    if ctx.drafts is not None:
        ctx.drafts.clear()
    logger.info("[register] user %s registered as %s (%s)",
                session.user_id, profile.alumni_id, profile.status)
    return SubmissionResult(ok=True, profile=profile, uploaded=uploaded)


# -------------------------------
# PROFILE EDIT
# -------------------------------
def start_edit(ctx):
    """Persisted profile (or an unsaved edit draft of it) for the edit wizard."""
    session = ctx.identity.get_current_session()
    if session is None:
        return None
    profile = ctx.database.fetch_profile(session.user_id)
    if profile is None:
        return None
    draft = ctx.drafts.load() if ctx.drafts is not None else None
    if draft is not None and draft.id == profile.id:
        # Identity and status fields always come from storage.
        draft.alumni_id = profile.alumni_id
        draft.status = profile.status
        draft.rejection_comments = profile.rejection_comments
        draft.payment_receipt = profile.payment_receipt
        draft.personal.email = profile.personal.email
        return draft
    return profile


def save_profile(ctx, controller):
    """Terminal action of the edit wizard: replace every section of the stored profile."""
    state = controller.state
    session = ctx.identity.get_current_session()
    if session is None:
        return _fail(LOGIN_REQUIRED_MSG)

    errors = validate_fields(state, PERSONAL_FIELDS + CONTACT_FIELDS, controller.today)
    if errors:
        controller.errors.update(errors)
        first = 'personal' if any(p in PERSONAL_FIELDS for p in errors) else 'contact'
        controller.jump_to(first)
        return _fail(FIX_ERRORS_MSG)

    uploaded = []
    photo = state.personal.profile_photo
    photo_url = _upload_photo(ctx, session.user_id, photo, uploaded)

    try:
        if photo and not photo_url:
            # Upload failed: keep whatever is stored.
            stored = ctx.database.fetch_profile(session.user_id)
            photo_url = stored.personal.profile_photo if stored is not None else ''
        state.personal.profile_photo = photo_url
        ctx.database.replace_sections(session.user_id, state_to_sections(state), profile_photo=photo_url)
        profile = ctx.database.fetch_profile(session.user_id)
    except BackendError:
        logger.exception("[edit] profile update failed for user %s", session.user_id)
        _rollback_uploads(ctx, uploaded)
        return _fail(UPDATE_FAILED_MSG)

    if ctx.drafts is not None:
        ctx.drafts.clear()
    logger.info("[edit] profile updated for user %s", session.user_id)
    return SubmissionResult(ok=True, profile=profile, uploaded=uploaded)


# -------------------------------
# ADMIN
# -------------------------------
def is_admin(user):
    if user is None or not getattr(user, "is_authenticated", False):
        return False
    return user.is_superuser or user.is_staff or AdminUser.objects.filter(user=user).exists()


def _require_admin(actor):
    if not is_admin(actor):
        raise PermissionDenied("administrator access required")


def verify_member(ctx, actor, user_id):
    """pending/rejected -> verified. Verified is final."""
    _require_admin(actor)
    profile = ctx.database.fetch_profile(user_id)
    if profile is None:
        raise ProfileNotFound(f"no profile for user {user_id}")
    if profile.status == STATUS_VERIFIED:
        return profile

    ctx.database.update_status(user_id, STATUS_VERIFIED)
    profile.status = STATUS_VERIFIED
    profile.rejection_comments = ''
    logger.info("[admin] verified %s (user %s)", profile.alumni_id, user_id)

    if ctx.notifier is not None:
        ctx.notifier.member_verified(profile)
    return profile


def reject_member(ctx, actor, user_id, comments):
    _require_admin(actor)
    profile = ctx.database.fetch_profile(user_id)
    if profile is None:
        raise ProfileNotFound(f"no profile for user {user_id}")
    if profile.status != STATUS_PENDING:
        raise InvalidStatusTransition(f"cannot reject a {profile.status} profile")

    ctx.database.update_status(user_id, STATUS_REJECTED, comments=comments or '')
    profile.status = STATUS_REJECTED
    profile.rejection_comments = comments or ''
    logger.info("[admin] rejected %s (user %s)", profile.alumni_id, user_id)
    return profile


def _normalize(s):
    return (s or '').strip().lower()


def admin_overview(profiles, query='', status='all'):
    """Search by name, email or alumni id; split into pending (anything not verified) and verified."""
    q = _normalize(query)

    def matches(p):
        if not q:
            return True
        hay = ' '.join(_normalize(v) for v in (
            p.personal.first_name, p.personal.last_name, p.personal.email, p.alumni_id,
        ))
        return q in hay

    pending = []
    verified = []
    for p in profiles:
        if not matches(p):
            continue
        if p.status == STATUS_VERIFIED:
            if status in ('all', STATUS_VERIFIED):
                verified.append(p)
        elif status in ('all', STATUS_PENDING):
            pending.append(p)

    return {
        'pending': pending,
        'verified': verified,
        'total_matched': len(pending) + len(verified),
    }


# -------------------------------
# DIRECTORY
# -------------------------------
def current_company(experience):
    """Current employer, else latest job, else latest venture."""
    for job in experience.employee:
        if job.is_current_employer:
            return {'company': job.company_name, 'designation': job.designation}
    if experience.employee:
        latest = experience.employee[-1]
        return {'company': latest.company_name, 'designation': latest.designation}
    if experience.entrepreneur:
        latest = experience.entrepreneur[-1]
        return {'company': latest.company_name, 'designation': 'Entrepreneur'}
    return None


def directory_card(member):
    """Public view of one member, masked by their privacy settings."""
    privacy = member.privacy
    present = member.contact.present_address
    company = current_company(member.experience)
    score = completeness(member)

    location = None
    if present.city and present.country:
        location = f"{present.city}, {present.country}"

    return {
        'id': member.id,
        'alumni_id': member.alumni_id,
        'name': member.personal.full_name,
        'pass_out_year': member.personal.pass_out_year,
        'photo_url': member.personal.profile_photo,
        'email': member.personal.email if privacy.show_email else None,
        'phone': member.contact.mobile if privacy.show_phone else None,
        'company': company if privacy.show_company else None,
        'location': location if privacy.show_location else None,
        'completeness': score.percentage,
        'completeness_label': score.label,
    }


def directory(profiles, viewer_id, query=''):
    """Verified members other than the viewer, filtered by name or current company."""
    members = [p for p in profiles if p.status == STATUS_VERIFIED]
    others = [p for p in members if p.id != viewer_id]
    # A lone member still sees their own card.
    members = others or members

    q = _normalize(query)
    cards = []
    for member in members:
        if q:
            company = current_company(member.experience) or {}
            if q not in _normalize(member.personal.full_name) and q not in _normalize(company.get('company')):
                continue
        cards.append(directory_card(member))
    return cards


# -------------------------------
# EVENTS
# -------------------------------
def record_rsvp(ctx, user_id, alumni_id, event_id, attending,
                meal_preference='Veg', total_participants=1):
    if attending is None:
        return _fail(ATTENDANCE_REQUIRED_MSG)

    row = {
        'userId': user_id,
        'alumniId': alumni_id,
        'eventId': event_id,
        'attending': bool(attending),
        'mealPreference': meal_preference if attending else None,
        'totalParticipants': total_participants if attending else 1,
    }
    try:
        rsvp = ctx.database.upsert_rsvp(row)
    except BackendError:
        logger.exception("[rsvp] failed for user %s event %s", user_id, event_id)
        return _fail(RSVP_FAILED_MSG)
    logger.info("[rsvp] user %s %s %s", user_id, 'attending' if attending else 'declined', event_id)
    return SubmissionResult(ok=True, profile=rsvp)
