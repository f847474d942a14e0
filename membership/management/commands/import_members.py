import os

import pandas as pd
from django.contrib.auth.models import User
from django.core.management.base import BaseCommand, CommandError

from membership.backends import BackendError, DjangoProfileDatabase
from membership.profile_state import STATUS_VERIFIED, ProfileFormState
from membership.services import current_company, insert_with_fresh_id
from membership.validation import CONTACT_FIELDS, PERSONAL_FIELDS, validate_fields

# Sheet header -> FieldPath value (or a non-validated attribute).
COLUMN_MAP = {
    'First Name': 'personal.first_name',
    'Last Name': 'personal.last_name',
    'Year of Pass Out': 'personal.pass_out_year',
    'Date of Birth': 'personal.dob',
    'Blood Group': 'personal.blood_group',
    'Highest Qualification': 'personal.highest_qualification',
    'Specialization': 'personal.specialization',
    'Alternate Email': 'personal.alt_email',
    'City': 'contact.present_address.city',
    'State': 'contact.present_address.state',
    'Country': 'contact.present_address.country',
    'Pincode': 'contact.present_address.pincode',
    'Mobile': 'contact.mobile',
    'Telephone': 'contact.telephone',
}


def _cell(row, column):
    value = row.get(column, '')
    if value is None:
        return ''
    value = str(value).strip()
    return '' if value.lower() == 'nan' else value


def row_to_state(row):
    """Build a ProfileFormState from one sheet row (a dict or pandas Series)."""
    state = ProfileFormState.empty()
    for column, path in COLUMN_MAP.items():
        state.set(path, _cell(row, column))
    state.personal.email = _cell(row, 'Email').lower()
    # Legacy sheets only carry one address.
    state.set_same_as_present_address(True)

    company = _cell(row, 'Company')
    if company:
        job = state.add_employee()
        job.company_name = company
        job.designation = _cell(row, 'Designation')
        job.is_current_employer = True
    return state


def read_sheet(path):
    ext = os.path.splitext(path)[1].lower()
    if ext in ('.xlsx', '.xls'):
        return pd.read_excel(path, dtype=str, keep_default_na=False)
    if ext == '.csv':
        return pd.read_csv(path, dtype=str, keep_default_na=False)
    raise CommandError(f"Unsupported file type: {ext} (use .xlsx or .csv)")


class Command(BaseCommand):
    help = 'Import legacy members from an Excel/CSV sheet as verified profiles'

    def add_arguments(self, parser):
        parser.add_argument('path', help='Path to the .xlsx or .csv member list')
        parser.add_argument('--dry-run', action='store_true', help='Validate rows without saving')

    def handle(self, *args, **options):
        path = options['path']
        if not os.path.exists(path):
            raise CommandError(f"File not found: {path}")

        df = read_sheet(path)
        self.stdout.write(f'Starting import of {len(df)} rows from {path}...')
        database = DjangoProfileDatabase()
        imported = skipped = 0
        seen = set()

        for index, row in df.iterrows():
            line = index + 2  # header is line 1
            state = row_to_state(row)
            email = state.personal.email

            errors = validate_fields(state, PERSONAL_FIELDS + CONTACT_FIELDS)
            if not email:
                errors['email'] = 'This field is required.'
            if errors:
                skipped += 1
                details = ', '.join(f"{getattr(k, 'value', k)}: {v}" for k, v in errors.items())
                self.stdout.write(self.style.WARNING(f'Line {line} skipped: {details}'))
                continue

            if email in seen:
                skipped += 1
                self.stdout.write(self.style.WARNING(f'Line {line} skipped: {email} appears earlier in the sheet'))
                continue
            if User.objects.filter(email__iexact=email).exists():
                skipped += 1
                self.stdout.write(self.style.WARNING(f'Line {line} skipped: {email} already has an account'))
                continue
            seen.add(email)

            if options['dry_run']:
                imported += 1
                continue

            user = User(
                username=email,
                email=email,
                first_name=state.personal.first_name[:150],
                last_name=state.personal.last_name[:150],
            )
            user.set_unusable_password()
            user.save()
            state.id = str(user.pk)

            try:
                profile = insert_with_fresh_id(database, state, status=STATUS_VERIFIED)
            except BackendError as e:
                user.delete()
                skipped += 1
                self.stdout.write(self.style.ERROR(f'Line {line} failed: {e}'))
                continue

            imported += 1
            company = current_company(profile.experience)
            self.stdout.write(
                f"Line {line}: {profile.alumni_id} {profile.personal.full_name}"
                + (f" ({company['company']})" if company else '')
            )

        verb = 'validated' if options['dry_run'] else 'imported'
        self.stdout.write(self.style.SUCCESS(f'Successfully {verb} {imported} members ({skipped} skipped)'))
