"""
Field rules for the registration and profile-edit wizards.

validate() is pure: it never touches the ORM, never raises for a bad value,
and returns either an error message or ''. The step controller calls it per
keystroke and again in bulk before leaving a step.
"""
import datetime
import enum

from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator


REQUIRED_MSG = 'This field is required.'
YEAR_MSG = 'Please enter a valid 4-digit year.'
EMAIL_MSG = 'Please enter a valid email address.'
PINCODE_MSG = 'Please enter a valid 4, 5 or 6 digit pincode.'
MOBILE_MSG = 'Please enter a valid mobile number.'

MIN_PASS_OUT_YEAR = 1950


class FieldPath(str, enum.Enum):
    FIRST_NAME = 'personal.first_name'
    LAST_NAME = 'personal.last_name'
    PASS_OUT_YEAR = 'personal.pass_out_year'
    DOB = 'personal.dob'
    BLOOD_GROUP = 'personal.blood_group'
    HIGHEST_QUALIFICATION = 'personal.highest_qualification'
    SPECIALIZATION = 'personal.specialization'
    ALT_EMAIL = 'personal.alt_email'

    PRESENT_CITY = 'contact.present_address.city'
    PRESENT_STATE = 'contact.present_address.state'
    PRESENT_COUNTRY = 'contact.present_address.country'
    PRESENT_PINCODE = 'contact.present_address.pincode'

    PERMANENT_CITY = 'contact.permanent_address.city'
    PERMANENT_STATE = 'contact.permanent_address.state'
    PERMANENT_COUNTRY = 'contact.permanent_address.country'
    PERMANENT_PINCODE = 'contact.permanent_address.pincode'

    MOBILE = 'contact.mobile'
    TELEPHONE = 'contact.telephone'

    @property
    def section(self):
        return self.value.split('.', 1)[0]


PERSONAL_FIELDS = (
    FieldPath.FIRST_NAME,
    FieldPath.LAST_NAME,
    FieldPath.PASS_OUT_YEAR,
    FieldPath.DOB,
    FieldPath.BLOOD_GROUP,
    FieldPath.HIGHEST_QUALIFICATION,
    FieldPath.ALT_EMAIL,
)

PRESENT_ADDRESS_FIELDS = (
    FieldPath.PRESENT_CITY,
    FieldPath.PRESENT_STATE,
    FieldPath.PRESENT_COUNTRY,
    FieldPath.PRESENT_PINCODE,
)

PERMANENT_ADDRESS_FIELDS = (
    FieldPath.PERMANENT_CITY,
    FieldPath.PERMANENT_STATE,
    FieldPath.PERMANENT_COUNTRY,
    FieldPath.PERMANENT_PINCODE,
)

CONTACT_FIELDS = PRESENT_ADDRESS_FIELDS + PERMANENT_ADDRESS_FIELDS + (FieldPath.MOBILE,)


year_validator = RegexValidator(regex=r'^[0-9]{4}\Z', message=YEAR_MSG)
email_validator = RegexValidator(regex=r'^[^\s@]+@[^\s@]+\.[^\s@]+\Z', message=EMAIL_MSG)
pincode_validator = RegexValidator(regex=r'^[0-9]{4,6}\Z', message=PINCODE_MSG)
mobile_validator = RegexValidator(regex=r'^\+?[0-9]{10,15}\Z', message=MOBILE_MSG)


def _check(validator, value):
    try:
        validator(value)
    except ValidationError as e:
        return e.messages[0]
    return ''


def _required(value, state, today):
    return '' if value else REQUIRED_MSG


def _pass_out_year(value, state, today):
    if not value:
        return REQUIRED_MSG
    error = _check(year_validator, value)
    if error:
        return error
    year = int(value)
    if year < MIN_PASS_OUT_YEAR or year > today.year:
        return YEAR_MSG
    return ''


def _alt_email(value, state, today):
    if not value:
        return ''
    return _check(email_validator, value)


def _pincode(value, state, today):
    if not value:
        return REQUIRED_MSG
    return _check(pincode_validator, value)


def _mobile(value, state, today):
    if not value:
        return REQUIRED_MSG
    return _check(mobile_validator, value)


def _optional(value, state, today):
    return ''


def _permanent(rule):
    def check(value, state, today):
        if state is not None and state.contact.same_as_present_address:
            return ''
        return rule(value, state, today)
    return check


_RULES = {
    FieldPath.FIRST_NAME: _required,
    FieldPath.LAST_NAME: _required,
    FieldPath.PASS_OUT_YEAR: _pass_out_year,
    FieldPath.DOB: _required,
    FieldPath.BLOOD_GROUP: _required,
    FieldPath.HIGHEST_QUALIFICATION: _required,
    FieldPath.SPECIALIZATION: _optional,
    FieldPath.ALT_EMAIL: _alt_email,
    FieldPath.PRESENT_CITY: _required,
    FieldPath.PRESENT_STATE: _required,
    FieldPath.PRESENT_COUNTRY: _required,
    FieldPath.PRESENT_PINCODE: _pincode,
    FieldPath.PERMANENT_CITY: _permanent(_required),
    FieldPath.PERMANENT_STATE: _permanent(_required),
    FieldPath.PERMANENT_COUNTRY: _permanent(_required),
    FieldPath.PERMANENT_PINCODE: _permanent(_pincode),
    FieldPath.MOBILE: _mobile,
    FieldPath.TELEPHONE: _optional,
}


def validate(path, value, state=None, today=None):
    """
    Return the error message for ``value`` at ``path`` or '' when it passes.

    ``state`` is the (possibly partial) ProfileFormState, needed only for
    cross-field rules such as the permanent-address skip.
    """
    rule = _RULES[FieldPath(path)]
    today = today or datetime.date.today()
    value = '' if value is None else str(value)
    return rule(value, state, today)


def validate_fields(state, paths, today=None):
    """Bulk-validate ``paths`` against ``state``; only failing paths are returned."""
    errors = {}
    for path in paths:
        error = validate(path, state.get(path), state, today)
        if error:
            errors[FieldPath(path)] = error
    return errors
