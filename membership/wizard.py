"""
Step tables and the controller shared by the registration and edit wizards.

Both flows run through one StepController; they differ only in the
WizardFlow passed in (step order, numbering and which steps validate).
"""
import logging
from dataclasses import dataclass, field

from . import locations
from .validation import (
    CONTACT_FIELDS, PERMANENT_ADDRESS_FIELDS, PERSONAL_FIELDS,
    FieldPath, validate, validate_fields,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepDefinition:
    key: str
    label: str
    owned_fields: tuple = ()
    validator: object = validate_fields   # None -> advances unconditionally


@dataclass(frozen=True)
class WizardFlow:
    name: str
    steps: tuple
    first_index: int = 0

    @property
    def last_index(self):
        return self.first_index + len(self.steps) - 1

    def step_at(self, number):
        return self.steps[number - self.first_index]

    def number_of(self, key):
        for offset, step in enumerate(self.steps):
            if step.key == key:
                return self.first_index + offset
        raise KeyError(key)


PERSONAL_STEP = StepDefinition('personal', 'Personal', PERSONAL_FIELDS)
CONTACT_STEP = StepDefinition('contact', 'Contact', CONTACT_FIELDS)
EXPERIENCE_STEP = StepDefinition('experience', 'Experience', validator=None)
PRIVACY_STEP = StepDefinition('privacy', 'Privacy', validator=None)
REVIEW_STEP = StepDefinition('review', 'Review', validator=None)
PAYMENT_STEP = StepDefinition('payment', 'Payment', validator=None)

REGISTRATION_FLOW = WizardFlow(
    name='registration',
    steps=(PERSONAL_STEP, CONTACT_STEP, EXPERIENCE_STEP, REVIEW_STEP, PAYMENT_STEP),
    first_index=1,
)

EDIT_FLOW = WizardFlow(
    name='edit',
    steps=(PERSONAL_STEP, CONTACT_STEP, EXPERIENCE_STEP, PRIVACY_STEP, REVIEW_STEP),
    first_index=0,
)

FLOWS = {flow.name: flow for flow in (REGISTRATION_FLOW, EDIT_FLOW)}

# Address fields whose change clears the fields below them.
_CASCADE_FIELDS = {
    FieldPath.PRESENT_COUNTRY: ('present_address', 'country'),
    FieldPath.PRESENT_STATE: ('present_address', 'state'),
    FieldPath.PRESENT_CITY: ('present_address', 'city'),
    FieldPath.PERMANENT_COUNTRY: ('permanent_address', 'country'),
    FieldPath.PERMANENT_STATE: ('permanent_address', 'state'),
    FieldPath.PERMANENT_CITY: ('permanent_address', 'city'),
}


@dataclass
class StepController:
    flow: WizardFlow
    state: object
    draft_store: object = None
    current: int = None
    errors: dict = field(default_factory=dict)
    today: object = None

    def __post_init__(self):
        if self.current is None:
            self.current = self.flow.first_index
        self.current = self._clamp(self.current)

    # ---------- position ----------
    @property
    def current_step(self):
        return self.flow.step_at(self.current)

    @property
    def is_first(self):
        return self.current == self.flow.first_index

    @property
    def is_last(self):
        return self.current == self.flow.last_index

    @property
    def step_numbers(self):
        return [(self.flow.first_index + i, step) for i, step in enumerate(self.flow.steps)]

    def _clamp(self, number):
        return max(self.flow.first_index, min(self.flow.last_index, int(number)))

    # ---------- transitions ----------
    def next(self):
        """
        Validate the current step's fields and advance when they all pass.

        Returns True when the step was left (or was already the last one).
        """
        step = self.current_step
        if step.validator is not None:
            found = step.validator(self.state, step.owned_fields, self.today)
            self._clear_errors(step.owned_fields)
            if found:
                self.errors.update(found)
                logger.info("[wizard:%s] step %s blocked by %d error(s)",
                            self.flow.name, step.key, len(found))
                return False
        if self.draft_store is not None:
            self.draft_store.save(self.state)
        self.current = self._clamp(self.current + 1)
        return True

    def previous(self):
        self.current = self._clamp(self.current - 1)

    def jump_to(self, step):
        """Jump by step number or key without validating (Review "Edit" links)."""
        if isinstance(step, str) and not step.isdigit():
            number = self.flow.number_of(step)
        else:
            number = int(step)
        self.current = self._clamp(number)

    # ---------- field edits ----------
    def update(self, path, value):
        """Per-keystroke edit: store the value and refresh that path's error."""
        path = FieldPath(path)
        if path in _CASCADE_FIELDS:
            attr, part = _CASCADE_FIELDS[path]
            locations.apply_change(getattr(self.state.contact, attr), part, value or '')
        else:
            self.state.set(path, value)
        self._set_error(path, validate(path, self.state.get(path), self.state, self.today))

    def set_same_as_present_address(self, checked):
        self.state.set_same_as_present_address(checked)
        if checked:
            self._clear_errors(PERMANENT_ADDRESS_FIELDS)

    def add_error(self, key, message):
        self.errors[key] = message

    def errors_for_step(self, step=None):
        step = step or self.current_step
        return {path: msg for path, msg in self.errors.items() if path in step.owned_fields}

    def error_map(self):
        """Errors keyed by plain strings, for templates and JSON."""
        return {getattr(key, 'value', key): msg for key, msg in self.errors.items()}

    def _set_error(self, path, message):
        if message:
            self.errors[path] = message
        else:
            self.errors.pop(path, None)

    def _clear_errors(self, paths):
        for path in paths:
            self.errors.pop(path, None)
