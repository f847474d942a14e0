import pytest

from membership.completeness import PROFILE_CHECKLIST, completeness, completeness_label
from membership.profile_state import ProfileFormState


def test_checklist_has_seventeen_fields():
    assert len(PROFILE_CHECKLIST) == 17


def test_empty_profile():
    result = completeness(ProfileFormState.empty())
    assert result.percentage == 0
    assert result.label == 'Complete your profile'
    assert 'First Name' in result.missing_required
    assert 'Profile Photo' in result.missing_optional


def test_valid_registration_scores_required_fields(valid_state):
    result = completeness(valid_state)
    # 12 required filled, 5 optional empty: 12/17 = 70.59 -> 71
    assert result.filled_count == 12
    assert result.percentage == 71
    assert result.label == 'Good profile'
    assert result.missing_required == []


def test_full_profile(valid_state):
    valid_state.personal.profile_photo = 'https://storage.test/photos/42/p.jpg'
    valid_state.personal.specialization = 'Mechanical'
    valid_state.personal.alt_email = 'asha.k@example.org'
    valid_state.contact.telephone = '0451-2345678'
    valid_state.add_entrepreneur().company_name = 'Kumar Works'

    result = completeness(valid_state)

    assert result.percentage == 100
    assert result.is_complete
    assert result.label == 'Complete profile'


def test_rounds_half_up():
    def checklist(filled):
        return [(str(i), True, (lambda p, hit=i < filled: hit)) for i in range(8)]

    # 1/8 = 12.5 and 5/8 = 62.5 both round up
    assert completeness(None, checklist(1)).percentage == 13
    assert completeness(None, checklist(5)).percentage == 63


def test_whitespace_is_not_filled(valid_state):
    valid_state.personal.first_name = '   '
    assert 'First Name' in completeness(valid_state).missing_required


@pytest.mark.parametrize('pct,label', [
    (100, 'Complete profile'),
    (99, 'Good profile'),
    (70, 'Good profile'),
    (69, 'Incomplete profile'),
    (50, 'Incomplete profile'),
    (49, 'Complete your profile'),
    (0, 'Complete your profile'),
])
def test_labels(pct, label):
    assert completeness_label(pct) == label
