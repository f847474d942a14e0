import pytest

from membership.locations import LocationDirectory, apply_change
from membership.profile_state import Address

DATASET = {
    'India': {'Tamil Nadu': ['Dindigul', 'Madurai'], 'Kerala': ['Kochi']},
    'Singapore': {'Singapore': ['Singapore']},
}


def test_options_follow_selection():
    directory = LocationDirectory(DATASET)
    address = Address(country='India', state='Tamil Nadu')

    options = directory.options_for(address)

    assert options['countries'] == ['India', 'Singapore']
    assert options['states'] == ['Kerala', 'Tamil Nadu']
    assert options['cities'] == ['Dindigul', 'Madurai']


def test_unknown_values_give_empty_options():
    directory = LocationDirectory(DATASET)
    assert directory.states('Atlantis') == []
    assert directory.cities('India', '') == []
    assert directory.cities(None, None) == []


def test_default_dataset_has_home_district():
    assert 'Dindigul' in LocationDirectory().cities('India', 'Tamil Nadu')


def test_country_change_clears_state_and_city():
    address = Address(city='Dindigul', state='Tamil Nadu', country='India', pincode='624001')
    apply_change(address, 'country', 'Singapore')
    assert (address.country, address.state, address.city) == ('Singapore', '', '')
    assert address.pincode == '624001'


def test_state_change_clears_city_only():
    address = Address(city='Dindigul', state='Tamil Nadu', country='India')
    apply_change(address, 'state', 'Kerala')
    assert (address.country, address.state, address.city) == ('India', 'Kerala', '')


def test_city_change_touches_nothing_else():
    address = Address(city='Dindigul', state='Tamil Nadu', country='India')
    apply_change(address, 'city', 'Madurai')
    assert (address.country, address.state, address.city) == ('India', 'Tamil Nadu', 'Madurai')


def test_non_cascading_field_rejected():
    with pytest.raises(ValueError):
        apply_change(Address(), 'pincode', '600001')
