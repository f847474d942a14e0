"""
In-memory registration data for one member.

The wizard mutates a ProfileFormState field by field; the same shape is
stored in the session as a draft and hydrated again for the edit flow.
Keys on the wire (draft JSON, stored sections) use the portal's camelCase
names so older drafts and stored rows keep loading.
"""
import copy
import time
from dataclasses import dataclass, field

from .validation import FieldPath


BLOOD_GROUPS = ['A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-']

STATUS_PENDING = 'pending'
STATUS_VERIFIED = 'verified'
STATUS_REJECTED = 'rejected'


@dataclass
class Address:
    city: str = ''
    state: str = ''
    country: str = ''
    pincode: str = ''

    def to_dict(self):
        return {
            'city': self.city,
            'state': self.state,
            'country': self.country,
            'pincode': self.pincode,
        }

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(
            city=_text(data.get('city')),
            state=_text(data.get('state')),
            country=_text(data.get('country')),
            pincode=_text(data.get('pincode')),
        )


@dataclass
class Personal:
    first_name: str = ''
    last_name: str = ''
    pass_out_year: str = ''
    dob: str = ''
    blood_group: str = ''
    email: str = ''
    alt_email: str = ''
    highest_qualification: str = ''
    specialization: str = ''
    profile_photo: str = ''

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self):
        return {
            'firstName': self.first_name,
            'lastName': self.last_name,
            'passOutYear': self.pass_out_year,
            'dob': self.dob,
            'bloodGroup': self.blood_group,
            'email': self.email,
            'altEmail': self.alt_email,
            'highestQualification': self.highest_qualification,
            'specialization': self.specialization,
            'profilePhoto': self.profile_photo,
        }

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(
            first_name=_text(data.get('firstName')),
            last_name=_text(data.get('lastName')),
            pass_out_year=_text(data.get('passOutYear')),
            dob=_text(data.get('dob')),
            blood_group=_text(data.get('bloodGroup')),
            email=_text(data.get('email')),
            alt_email=_text(data.get('altEmail')),
            highest_qualification=_text(data.get('highestQualification')),
            specialization=_text(data.get('specialization')),
            profile_photo=_text(data.get('profilePhoto')),
        )


@dataclass
class Contact:
    present_address: Address = field(default_factory=Address)
    permanent_address: Address = field(default_factory=Address)
    same_as_present_address: bool = False
    mobile: str = ''
    telephone: str = ''

    def to_dict(self):
        return {
            'presentAddress': self.present_address.to_dict(),
            'permanentAddress': self.permanent_address.to_dict(),
            'sameAsPresentAddress': self.same_as_present_address,
            'mobile': self.mobile,
            'telephone': self.telephone,
        }

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(
            present_address=Address.from_dict(data.get('presentAddress')),
            permanent_address=Address.from_dict(data.get('permanentAddress')),
            same_as_present_address=bool(data.get('sameAsPresentAddress')),
            mobile=_text(data.get('mobile')),
            telephone=_text(data.get('telephone')),
        )


@dataclass
class EmployeeExperience:
    id: str
    company_name: str = ''
    designation: str = ''
    start_date: str = ''
    end_date: str = ''
    is_current_employer: bool = False
    city: str = ''
    state: str = ''
    country: str = ''

    def to_dict(self):
        return {
            'id': self.id,
            'companyName': self.company_name,
            'designation': self.designation,
            'startDate': self.start_date,
            'endDate': self.end_date,
            'isCurrentEmployer': self.is_current_employer,
            'city': self.city,
            'state': self.state,
            'country': self.country,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=_text(data.get('id')),
            company_name=_text(data.get('companyName')),
            designation=_text(data.get('designation')),
            start_date=_text(data.get('startDate')),
            end_date=_text(data.get('endDate')),
            is_current_employer=bool(data.get('isCurrentEmployer')),
            city=_text(data.get('city')),
            state=_text(data.get('state')),
            country=_text(data.get('country')),
        )


@dataclass
class EntrepreneurExperience:
    id: str
    company_name: str = ''
    nature_of_business: str = ''
    city: str = ''
    state: str = ''
    country: str = ''

    def to_dict(self):
        return {
            'id': self.id,
            'companyName': self.company_name,
            'natureOfBusiness': self.nature_of_business,
            'city': self.city,
            'state': self.state,
            'country': self.country,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=_text(data.get('id')),
            company_name=_text(data.get('companyName')),
            nature_of_business=_text(data.get('natureOfBusiness')),
            city=_text(data.get('city')),
            state=_text(data.get('state')),
            country=_text(data.get('country')),
        )


@dataclass
class OpenToWorkDetails:
    technical_skills: str = ''
    certifications: str = ''
    soft_skills: str = ''
    other: str = ''

    def to_dict(self):
        return {
            'technicalSkills': self.technical_skills,
            'certifications': self.certifications,
            'softSkills': self.soft_skills,
            'other': self.other,
        }

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(
            technical_skills=_text(data.get('technicalSkills')),
            certifications=_text(data.get('certifications')),
            soft_skills=_text(data.get('softSkills')),
            other=_text(data.get('other')),
        )


@dataclass
class Experience:
    employee: list = field(default_factory=list)
    entrepreneur: list = field(default_factory=list)
    is_open_to_work: bool = False
    open_to_work_details: OpenToWorkDetails = field(default_factory=OpenToWorkDetails)

    def to_dict(self):
        return {
            'employee': [e.to_dict() for e in self.employee],
            'entrepreneur': [e.to_dict() for e in self.entrepreneur],
            'isOpenToWork': self.is_open_to_work,
            'openToWorkDetails': self.open_to_work_details.to_dict(),
        }

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(
            employee=[EmployeeExperience.from_dict(e) for e in data.get('employee') or []],
            entrepreneur=[EntrepreneurExperience.from_dict(e) for e in data.get('entrepreneur') or []],
            is_open_to_work=bool(data.get('isOpenToWork')),
            open_to_work_details=OpenToWorkDetails.from_dict(data.get('openToWorkDetails')),
        )


@dataclass
class Privacy:
    # Directory visibility only; registration never reads these.
    show_email: bool = True
    show_phone: bool = False
    show_company: bool = False
    show_location: bool = False

    def to_dict(self):
        return {
            'showEmail': self.show_email,
            'showPhone': self.show_phone,
            'showCompany': self.show_company,
            'showLocation': self.show_location,
        }

    @classmethod
    def from_dict(cls, data):
        if not data:
            return cls()
        return cls(
            show_email=bool(data.get('showEmail', True)),
            show_phone=bool(data.get('showPhone', False)),
            show_company=bool(data.get('showCompany', False)),
            show_location=bool(data.get('showLocation', False)),
        )


# Accessors for every FieldPath: (section getter, attribute name).
_FIELD_ACCESSORS = {
    FieldPath.FIRST_NAME: (lambda s: s.personal, 'first_name'),
    FieldPath.LAST_NAME: (lambda s: s.personal, 'last_name'),
    FieldPath.PASS_OUT_YEAR: (lambda s: s.personal, 'pass_out_year'),
    FieldPath.DOB: (lambda s: s.personal, 'dob'),
    FieldPath.BLOOD_GROUP: (lambda s: s.personal, 'blood_group'),
    FieldPath.HIGHEST_QUALIFICATION: (lambda s: s.personal, 'highest_qualification'),
    FieldPath.SPECIALIZATION: (lambda s: s.personal, 'specialization'),
    FieldPath.ALT_EMAIL: (lambda s: s.personal, 'alt_email'),
    FieldPath.PRESENT_CITY: (lambda s: s.contact.present_address, 'city'),
    FieldPath.PRESENT_STATE: (lambda s: s.contact.present_address, 'state'),
    FieldPath.PRESENT_COUNTRY: (lambda s: s.contact.present_address, 'country'),
    FieldPath.PRESENT_PINCODE: (lambda s: s.contact.present_address, 'pincode'),
    FieldPath.PERMANENT_CITY: (lambda s: s.contact.permanent_address, 'city'),
    FieldPath.PERMANENT_STATE: (lambda s: s.contact.permanent_address, 'state'),
    FieldPath.PERMANENT_COUNTRY: (lambda s: s.contact.permanent_address, 'country'),
    FieldPath.PERMANENT_PINCODE: (lambda s: s.contact.permanent_address, 'pincode'),
    FieldPath.MOBILE: (lambda s: s.contact, 'mobile'),
    FieldPath.TELEPHONE: (lambda s: s.contact, 'telephone'),
}


@dataclass
class ProfileFormState:
    id: str = ''
    alumni_id: str = ''
    status: str = STATUS_PENDING
    rejection_comments: str = ''
    payment_receipt: str = ''
    personal: Personal = field(default_factory=Personal)
    contact: Contact = field(default_factory=Contact)
    experience: Experience = field(default_factory=Experience)
    privacy: Privacy = field(default_factory=Privacy)

    @classmethod
    def empty(cls):
        return cls()

    # ---------- serialization ----------
    def to_dict(self):
        return {
            'id': self.id,
            'alumniId': self.alumni_id,
            'status': self.status,
            'rejectionComments': self.rejection_comments,
            'paymentReceipt': self.payment_receipt,
            'personal': self.personal.to_dict(),
            'contact': self.contact.to_dict(),
            'experience': self.experience.to_dict(),
            'privacy': self.privacy.to_dict(),
        }

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise TypeError('profile data must be a mapping')
        return cls(
            id=_text(data.get('id')),
            alumni_id=_text(data.get('alumniId')),
            status=_text(data.get('status')) or STATUS_PENDING,
            rejection_comments=_text(data.get('rejectionComments')),
            payment_receipt=_text(data.get('paymentReceipt')),
            personal=Personal.from_dict(data.get('personal')),
            contact=Contact.from_dict(data.get('contact')),
            experience=Experience.from_dict(data.get('experience')),
            privacy=Privacy.from_dict(data.get('privacy')),
        )

    # ---------- field paths ----------
    def get(self, path):
        section, attr = _FIELD_ACCESSORS[FieldPath(path)]
        return getattr(section(self), attr)

    def set(self, path, value):
        section, attr = _FIELD_ACCESSORS[FieldPath(path)]
        setattr(section(self), attr, _text(value))

    # ---------- identity ----------
    def prefill_from_identity(self, session):
        """Copy id, email and split display name from the signed-in identity."""
        if session is None:
            return
        self.id = session.user_id or self.id
        self.personal.email = session.email or self.personal.email
        parts = (session.display_name or '').split()
        if parts:
            self.personal.first_name = parts[0]
            self.personal.last_name = ' '.join(parts[1:]) or self.personal.last_name

    # ---------- contact ----------
    def set_same_as_present_address(self, checked):
        self.contact.same_as_present_address = bool(checked)
        if checked:
            # Copy, so later edits to the present address do not follow.
            self.contact.permanent_address = copy.copy(self.contact.present_address)

    # ---------- experience ----------
    def add_employee(self):
        entry = EmployeeExperience(id=_entry_id('emp', self.experience.employee))
        self.experience.employee.append(entry)
        return entry

    def remove_employee(self, entry_id):
        self.experience.employee = [e for e in self.experience.employee if e.id != entry_id]

    def add_entrepreneur(self):
        entry = EntrepreneurExperience(id=_entry_id('ent', self.experience.entrepreneur))
        self.experience.entrepreneur.append(entry)
        return entry

    def remove_entrepreneur(self, entry_id):
        self.experience.entrepreneur = [e for e in self.experience.entrepreneur if e.id != entry_id]

    def find_experience(self, entry_id):
        for entry in self.experience.employee + self.experience.entrepreneur:
            if entry.id == entry_id:
                return entry
        return None

    def set_current_employer(self, entry_id, checked):
        entry = self.find_experience(entry_id)
        if not isinstance(entry, EmployeeExperience):
            return
        entry.is_current_employer = bool(checked)
        if checked:
            entry.end_date = ''

    def set_open_to_work(self, checked):
        # Details are kept when unchecked so they come back if re-checked.
        self.experience.is_open_to_work = bool(checked)


def _text(value):
    if value is None:
        return ''
    return str(value)


def _entry_id(prefix, existing):
    taken = {e.id for e in existing}
    stamp = int(time.time() * 1000)
    candidate = f"{prefix}_{stamp}"
    while candidate in taken:
        stamp += 1
        candidate = f"{prefix}_{stamp}"
    return candidate
