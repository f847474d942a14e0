"""Profile completeness for the dashboard card and directory badges."""
import math
from dataclasses import dataclass


# (label, required, getter). One checklist for every call site.
PROFILE_CHECKLIST = [
    ('First Name', True, lambda p: p.personal.first_name),
    ('Last Name', True, lambda p: p.personal.last_name),
    ('Year of Pass Out', True, lambda p: p.personal.pass_out_year),
    ('Date of Birth', True, lambda p: p.personal.dob),
    ('Blood Group', True, lambda p: p.personal.blood_group),
    ('Highest Qualification', True, lambda p: p.personal.highest_qualification),
    ('Email', True, lambda p: p.personal.email),
    ('Profile Photo', False, lambda p: p.personal.profile_photo),
    ('Specialization', False, lambda p: p.personal.specialization),
    ('Alternate Email', False, lambda p: p.personal.alt_email),
    ('Mobile Number', True, lambda p: p.contact.mobile),
    ('City', True, lambda p: p.contact.present_address.city),
    ('State', True, lambda p: p.contact.present_address.state),
    ('Country', True, lambda p: p.contact.present_address.country),
    ('Pincode', True, lambda p: p.contact.present_address.pincode),
    ('Telephone', False, lambda p: p.contact.telephone),
    ('Work Experience', False,
     lambda p: bool(p.experience.employee) or bool(p.experience.entrepreneur)),
]


@dataclass
class Completeness:
    percentage: int
    missing_required: list
    missing_optional: list
    filled_count: int
    total_count: int

    @property
    def is_complete(self):
        return self.percentage == 100

    @property
    def label(self):
        return completeness_label(self.percentage)


def _is_filled(value):
    if isinstance(value, bool):
        return value
    return bool(value) and str(value).strip() != ''


def completeness(profile, checklist=None):
    checklist = checklist or PROFILE_CHECKLIST
    missing_required = []
    missing_optional = []
    filled = 0

    for label, required, getter in checklist:
        if _is_filled(getter(profile)):
            filled += 1
        elif required:
            missing_required.append(label)
        else:
            missing_optional.append(label)

    total = len(checklist)
    # Half-up rounding, not Python's banker's rounding.
    percentage = int(math.floor(filled / total * 100 + 0.5)) if total else 0
    return Completeness(
        percentage=percentage,
        missing_required=missing_required,
        missing_optional=missing_optional,
        filled_count=filled,
        total_count=total,
    )


def completeness_label(percentage):
    if percentage == 100:
        return 'Complete profile'
    if percentage >= 70:
        return 'Good profile'
    if percentage >= 50:
        return 'Incomplete profile'
    return 'Complete your profile'
