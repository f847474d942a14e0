import logging

from django.conf import settings
from django.contrib import messages
from django.contrib.auth import login, logout
from django.contrib.auth.decorators import login_required
from django.http import Http404, JsonResponse
from django.shortcuts import redirect, render
from django.views.decorators.http import require_POST

from . import services
from .backends import BackendError, ProfileNotFound, build_context
from .completeness import completeness
from .forms import (
    AdminFilterForm, DirectorySearchForm, EventRSVPForm, ProfilePhotoForm,
    ReceiptUploadForm, RejectionForm, SignupForm,
)
from .locations import LocationDirectory
from .models import EventRegistration
from .profile_state import BLOOD_GROUPS, STATUS_REJECTED, STATUS_VERIFIED
from .validation import FieldPath
from .wizard import EDIT_FLOW, REGISTRATION_FLOW, StepController

logger = logging.getLogger(__name__)

REGISTRATION_DRAFT_KEY = 'registration_draft'
EDIT_DRAFT_KEY = 'edit_draft'

FIELD_LABELS = {
    FieldPath.FIRST_NAME: 'First Name',
    FieldPath.LAST_NAME: 'Last Name',
    FieldPath.PASS_OUT_YEAR: 'Year of Pass Out',
    FieldPath.DOB: 'Date of Birth',
    FieldPath.BLOOD_GROUP: 'Blood Group',
    FieldPath.HIGHEST_QUALIFICATION: 'Highest Qualification',
    FieldPath.SPECIALIZATION: 'Specialization',
    FieldPath.ALT_EMAIL: 'Alternate Email',
    FieldPath.PRESENT_COUNTRY: 'Country',
    FieldPath.PRESENT_STATE: 'State',
    FieldPath.PRESENT_CITY: 'City',
    FieldPath.PRESENT_PINCODE: 'Pincode',
    FieldPath.PERMANENT_COUNTRY: 'Country',
    FieldPath.PERMANENT_STATE: 'State',
    FieldPath.PERMANENT_CITY: 'City',
    FieldPath.PERMANENT_PINCODE: 'Pincode',
    FieldPath.MOBILE: 'Mobile Number',
    FieldPath.TELEPHONE: 'Telephone',
}

PERSONAL_FORM_FIELDS = (
    FieldPath.FIRST_NAME, FieldPath.LAST_NAME, FieldPath.PASS_OUT_YEAR, FieldPath.DOB,
    FieldPath.BLOOD_GROUP, FieldPath.HIGHEST_QUALIFICATION, FieldPath.SPECIALIZATION,
    FieldPath.ALT_EMAIL,
)
# Cascade order: country, state, city, then pincode.
PRESENT_ADDRESS_FORM = (
    FieldPath.PRESENT_COUNTRY, FieldPath.PRESENT_STATE, FieldPath.PRESENT_CITY, FieldPath.PRESENT_PINCODE,
)
PERMANENT_ADDRESS_FORM = (
    FieldPath.PERMANENT_COUNTRY, FieldPath.PERMANENT_STATE, FieldPath.PERMANENT_CITY, FieldPath.PERMANENT_PINCODE,
)
PHONE_FORM_FIELDS = (FieldPath.MOBILE, FieldPath.TELEPHONE)

EMPLOYEE_ATTRS = ('company_name', 'designation', 'start_date', 'end_date', 'city', 'state', 'country')
ENTREPRENEUR_ATTRS = ('company_name', 'nature_of_business', 'city', 'state', 'country')
OPEN_TO_WORK_ATTRS = ('technical_skills', 'certifications', 'soft_skills', 'other')
PRIVACY_ATTRS = ('show_email', 'show_phone', 'show_company', 'show_location')


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
def _field_options(ctx, state, path):
    if path == FieldPath.BLOOD_GROUP:
        return BLOOD_GROUPS
    if path.section != 'contact' or path in PHONE_FORM_FIELDS or path.value.endswith('pincode'):
        return None
    address = state.contact.present_address if 'present' in path.value else state.contact.permanent_address
    options = ctx.locations.options_for(address)
    part = path.value.rsplit('.', 1)[-1]
    choices = {'country': options['countries'], 'state': options['states'], 'city': options['cities']}[part]
    current = getattr(address, part)
    if current and current not in choices:
        # Imported or legacy value outside the reference data.
        choices = [current] + choices
    return choices


def _field_rows(ctx, controller, paths):
    errors = controller.error_map()
    return [
        {
            'name': path.value,
            'label': FIELD_LABELS[path],
            'value': controller.state.get(path),
            'error': errors.get(path.value, ''),
            'options': _field_options(ctx, controller.state, path),
        }
        for path in paths
    ]


def _apply_plain_fields(controller, post, paths):
    for path in paths:
        if path.value not in post:
            continue
        value = post.get(path.value, '').strip()
        if value != controller.state.get(path):
            controller.update(path, value)


def _apply_address(ctx, controller, post, paths):
    *cascade, pincode = paths
    for path in cascade:
        if path.value not in post:
            continue
        value = post.get(path.value, '').strip()
        if value == controller.state.get(path):
            continue
        if value and value not in _field_options(ctx, controller.state, path):
            # Posted for the previous parent; leave it cleared.
            break
        controller.update(path, value)
    _apply_plain_fields(controller, post, (pincode,))


def _apply_experience(state, post):
    for entry in state.experience.employee:
        prefix = f"employee.{entry.id}."
        for attr in EMPLOYEE_ATTRS:
            if prefix + attr in post:
                setattr(entry, attr, post.get(prefix + attr, '').strip())
        current = post.get(prefix + 'is_current_employer') == 'on'
        if current != entry.is_current_employer:
            state.set_current_employer(entry.id, current)
        if entry.is_current_employer:
            entry.end_date = ''

    for entry in state.experience.entrepreneur:
        prefix = f"entrepreneur.{entry.id}."
        for attr in ENTREPRENEUR_ATTRS:
            if prefix + attr in post:
                setattr(entry, attr, post.get(prefix + attr, '').strip())

    state.set_open_to_work(post.get('is_open_to_work') == 'on')
    details = state.experience.open_to_work_details
    for attr in OPEN_TO_WORK_ATTRS:
        name = f"open_to_work.{attr}"
        if name in post:
            setattr(details, attr, post.get(name, '').strip())


def _apply_step_fields(ctx, controller, request):
    """Copy the posted fields of the step the form was rendered for into the state."""
    post = request.POST
    step = controller.current_step.key
    if post.get('step') != step:
        return

    state = controller.state
    if step == 'personal':
        _apply_plain_fields(controller, post, PERSONAL_FORM_FIELDS)
        photo_form = ProfilePhotoForm(post, request.FILES)
        if photo_form.is_valid():
            data_url = photo_form.as_data_url()
            if data_url:
                state.personal.profile_photo = data_url
            controller.errors.pop('photo', None)
        else:
            controller.add_error('photo', photo_form.errors['photo'][0])
    elif step == 'contact':
        _apply_address(ctx, controller, post, PRESENT_ADDRESS_FORM)
        _apply_plain_fields(controller, post, PHONE_FORM_FIELDS)
        same = post.get('same_as_present_address') == 'on'
        if same != state.contact.same_as_present_address:
            controller.set_same_as_present_address(same)
        if not same:
            _apply_address(ctx, controller, post, PERMANENT_ADDRESS_FORM)
    elif step == 'experience':
        _apply_experience(state, post)
    elif step == 'privacy':
        for attr in PRIVACY_ATTRS:
            setattr(state.privacy, attr, post.get(f"privacy.{attr}") == 'on')


def _run_step_action(controller, action, arg):
    """Apply a wizard button; True when next() advanced and saved its own snapshot."""
    state = controller.state
    if action == 'next':
        return controller.next()
    elif action == 'previous':
        controller.previous()
    elif action == 'jump':
        try:
            target = int(arg) if arg.isdigit() else controller.flow.number_of(arg)
        except KeyError:
            logger.warning("[wizard:%s] jump to unknown step %r", controller.flow.name, arg)
            return
        # Only completed steps can be revisited.
        if target <= controller.current:
            controller.jump_to(target)
    elif action == 'add_employee':
        state.add_employee()
    elif action == 'remove_employee':
        state.remove_employee(arg)
    elif action == 'add_entrepreneur':
        state.add_entrepreneur()
    elif action == 'remove_entrepreneur':
        state.remove_entrepreneur(arg)
    # Anything else ('refresh') just re-renders with the posted values.
    return False


def _save_draft_if_changed(ctx, state, before):
    if state.to_dict() != before:
        ctx.drafts.save(state)


def _step_key(flow):
    return f"{flow.name}_step"


def _render_wizard(request, ctx, controller, receipt_form=None, photo_form=None):
    state = controller.state
    request.session[_step_key(controller.flow)] = controller.current
    return render(request, 'membership/wizard.html', {
        'flow': controller.flow,
        'controller': controller,
        'step': controller.current_step,
        'steps': controller.step_numbers,
        'state': state,
        'errors': controller.error_map(),
        'personal_fields': _field_rows(ctx, controller, PERSONAL_FORM_FIELDS),
        'present_fields': _field_rows(ctx, controller, PRESENT_ADDRESS_FORM),
        'permanent_fields': _field_rows(ctx, controller, PERMANENT_ADDRESS_FORM),
        'phone_fields': _field_rows(ctx, controller, PHONE_FORM_FIELDS),
        'photo_form': photo_form or ProfilePhotoForm(),
        'receipt_form': receipt_form or ReceiptUploadForm(),
        'completeness': completeness(state),
        'current_company': services.current_company(state.experience),
    })


# ---------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------
def signup_view(request):
    if request.user.is_authenticated:
        return redirect('membership:dashboard')

    if request.method == 'POST':
        form = SignupForm(request.POST)
        if form.is_valid():
            user = form.save()
            login(request, user, backend=settings.AUTHENTICATION_BACKENDS[0])
            logger.info("[signup_view] created user id=%s", user.id)
            return redirect('membership:register')
    else:
        form = SignupForm()
    return render(request, 'membership/signup.html', {'form': form})


def logout_view(request):
    logout(request)
    return redirect('login')


# ---------------------------------------------------------------------
# Registration / edit wizards
# ---------------------------------------------------------------------
@login_required
def register_view(request):
    ctx = build_context(request, draft_key=REGISTRATION_DRAFT_KEY)
    try:
        state = services.start_registration(ctx)
    except BackendError:
        logger.exception("[register_view] could not load profile")
        messages.error(request, 'Something went wrong. Please try again.')
        return redirect('membership:dashboard')

    if state is None:
        return redirect('membership:dashboard')

    controller = StepController(
        REGISTRATION_FLOW, state, draft_store=ctx.drafts,
        current=request.session.get(_step_key(REGISTRATION_FLOW)),
    )
    if request.method != 'POST':
        if state.status == STATUS_REJECTED and state.rejection_comments:
            messages.warning(request, f'Your registration was rejected: {state.rejection_comments}')
        return _render_wizard(request, ctx, controller)

    before = state.to_dict()
    _apply_step_fields(ctx, controller, request)
    action, _, arg = request.POST.get('action', '').partition(':')

    if action == 'submit':
        receipt_form = ReceiptUploadForm(request.POST, request.FILES)
        if not receipt_form.is_valid():
            controller.add_error(services.RECEIPT_ERROR_KEY, receipt_form.errors['receipt'][0])
            return _render_wizard(request, ctx, controller, receipt_form=receipt_form)

        result = services.submit_registration(ctx, controller, receipt_form.cleaned_data.get('receipt'))
        if result.ok:
            request.session.pop(_step_key(REGISTRATION_FLOW), None)
            messages.success(
                request,
                f'Registration submitted. Your alumni ID is {result.profile.alumni_id}; '
                'it will be activated once your payment is verified.'
            )
            return redirect('membership:dashboard')
        if result.alert:
            messages.error(request, result.alert)
        _save_draft_if_changed(ctx, state, before)
        return _render_wizard(request, ctx, controller, receipt_form=receipt_form)

    if not _run_step_action(controller, action, arg):
        _save_draft_if_changed(ctx, state, before)
    return _render_wizard(request, ctx, controller)


@login_required
def edit_profile_view(request):
    ctx = build_context(request, draft_key=EDIT_DRAFT_KEY)
    try:
        state = services.start_edit(ctx)
    except BackendError:
        logger.exception("[edit_profile_view] could not load profile")
        messages.error(request, 'Something went wrong. Please try again.')
        return redirect('membership:dashboard')

    if state is None:
        messages.error(request, 'Profile not found')
        return redirect('membership:register')

    controller = StepController(
        EDIT_FLOW, state, draft_store=ctx.drafts,
        current=request.session.get(_step_key(EDIT_FLOW)),
    )
    if request.method != 'POST':
        return _render_wizard(request, ctx, controller)

    before = state.to_dict()
    _apply_step_fields(ctx, controller, request)
    action, _, arg = request.POST.get('action', '').partition(':')

    if action == 'save':
        result = services.save_profile(ctx, controller)
        if result.ok:
            request.session.pop(_step_key(EDIT_FLOW), None)
            messages.success(request, 'Profile updated successfully')
            return redirect('membership:dashboard')
        messages.error(request, result.alert)
        _save_draft_if_changed(ctx, state, before)
        return _render_wizard(request, ctx, controller)

    if action == 'cancel':
        ctx.drafts.clear()
        request.session.pop(_step_key(EDIT_FLOW), None)
        return redirect('membership:dashboard')

    if not _run_step_action(controller, action, arg):
        _save_draft_if_changed(ctx, state, before)
    return _render_wizard(request, ctx, controller)


def locations_view(request):
    """JSON options for the address selects: ?country=..&state=.."""
    directory = LocationDirectory()
    country = request.GET.get('country', '')
    state = request.GET.get('state', '')
    return JsonResponse({
        'countries': directory.countries(),
        'states': directory.states(country),
        'cities': directory.cities(country, state),
    })


# ---------------------------------------------------------------------
# Member pages
# ---------------------------------------------------------------------
@login_required
def dashboard_view(request):
    ctx = build_context(request)
    profile = ctx.database.fetch_profile(str(request.user.pk))
    if profile is None:
        return redirect('membership:register')

    rsvp = EventRegistration.objects.filter(
        user=request.user, event_id=settings.DTEAA_EVENT_ID
    ).first()
    return render(request, 'membership/dashboard.html', {
        'profile': profile,
        'completeness': completeness(profile),
        'current_company': services.current_company(profile.experience),
        'rsvp': rsvp,
        'rsvp_form': EventRSVPForm(),
        'event_id': settings.DTEAA_EVENT_ID,
        'is_admin': services.is_admin(request.user),
    })


@login_required
def directory_view(request):
    ctx = build_context(request)
    viewer_id = str(request.user.pk)
    me = ctx.database.fetch_profile(viewer_id)
    if (me is None or me.status != STATUS_VERIFIED) and not services.is_admin(request.user):
        messages.error(request, 'The directory is available once your membership is verified.')
        return redirect('membership:dashboard')

    form = DirectorySearchForm(request.GET or None)
    query = form.cleaned_data.get('q', '') if form.is_valid() else ''
    cards = services.directory(ctx.database.list_profiles(status=STATUS_VERIFIED), viewer_id, query)
    return render(request, 'membership/directory.html', {'form': form, 'cards': cards, 'query': query})


@login_required
@require_POST
def event_rsvp_view(request):
    ctx = build_context(request)
    profile = ctx.database.fetch_profile(str(request.user.pk))
    if profile is None or profile.status != STATUS_VERIFIED:
        messages.error(request, 'Only verified members can register for events.')
        return redirect('membership:dashboard')

    form = EventRSVPForm(request.POST)
    if not form.is_valid():
        messages.error(request, 'Please correct the RSVP details.')
        return redirect('membership:dashboard')

    data = form.cleaned_data
    result = services.record_rsvp(
        ctx,
        user_id=str(request.user.pk),
        alumni_id=profile.alumni_id,
        event_id=settings.DTEAA_EVENT_ID,
        attending=data['attending'],
        meal_preference=data.get('meal_preference'),
        total_participants=data.get('total_participants') or 1,
    )
    if result.ok:
        messages.success(request, 'Your response has been recorded.')
    else:
        messages.error(request, result.alert)
    return redirect('membership:dashboard')


# ---------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------
@login_required
def admin_panel_view(request):
    if not services.is_admin(request.user):
        messages.error(request, 'Access denied')
        return redirect('membership:dashboard')

    ctx = build_context(request)
    form = AdminFilterForm(request.GET or None)
    query, status = '', 'all'
    if form.is_valid():
        query = form.cleaned_data.get('q', '')
        status = form.cleaned_data.get('status', 'all')

    overview = services.admin_overview(ctx.database.list_profiles(), query, status)
    return render(request, 'membership/admin_panel.html', {
        'form': form,
        'pending_requests': overview['pending'],
        'verified_members': overview['verified'],
        'total_matched': overview['total_matched'],
    })


@login_required
def admin_review_view(request, user_id):
    if not services.is_admin(request.user):
        messages.error(request, 'Access denied')
        return redirect('membership:dashboard')

    ctx = build_context(request)
    profile = ctx.database.fetch_profile(str(user_id))
    if profile is None:
        raise Http404('Profile not found')
    return render(request, 'membership/admin_review.html', {
        'profile': profile,
        'completeness': completeness(profile),
        'rejection_form': RejectionForm(),
    })


@login_required
@require_POST
def admin_action_view(request, user_id, action):
    ctx = build_context(request)
    user_id = str(user_id)

    try:
        if action == 'verify':
            profile = services.verify_member(ctx, request.user, user_id)
            messages.success(request, f'Member {profile.alumni_id} verified successfully')
        elif action == 'reject':
            form = RejectionForm(request.POST)
            if not form.is_valid():
                messages.error(request, form.errors['comments'][0])
                return redirect('membership:admin_review', user_id=user_id)
            profile = services.reject_member(ctx, request.user, user_id, form.cleaned_data['comments'])
            messages.success(request, f'Member {profile.alumni_id} rejected')
        else:
            messages.error(request, 'Invalid action')
    except ProfileNotFound:
        raise Http404('Profile not found')
    except services.InvalidStatusTransition as e:
        messages.error(request, str(e))
    except BackendError:
        logger.exception("[admin_action_view] %s failed for user %s", action, user_id)
        messages.error(request, 'Something went wrong. Please try again.')

    return redirect('membership:admin_panel')
