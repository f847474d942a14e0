"""
Country -> state -> city lookups for the address selects.

Values are stored and compared by display name. Two cities that share a
name in different states are indistinguishable here.
"""


# -------------------------------
# STATIC REFERENCE DATA
# -------------------------------
DEFAULT_LOCATIONS = {
    'India': {
        'Tamil Nadu': ['Chennai', 'Coimbatore', 'Dindigul', 'Madurai', 'Salem', 'Tiruchirappalli', 'Tirunelveli'],
        'Karnataka': ['Bengaluru', 'Hubballi', 'Mangaluru', 'Mysuru'],
        'Kerala': ['Kochi', 'Kozhikode', 'Thiruvananthapuram', 'Thrissur'],
        'Andhra Pradesh': ['Guntur', 'Tirupati', 'Vijayawada', 'Visakhapatnam'],
        'Telangana': ['Hyderabad', 'Karimnagar', 'Warangal'],
        'Maharashtra': ['Mumbai', 'Nagpur', 'Nashik', 'Pune'],
        'Gujarat': ['Ahmedabad', 'Rajkot', 'Surat', 'Vadodara'],
        'Delhi': ['New Delhi'],
        'Uttar Pradesh': ['Kanpur', 'Lucknow', 'Noida', 'Varanasi'],
        'West Bengal': ['Durgapur', 'Howrah', 'Kolkata'],
        'Puducherry': ['Karaikal', 'Puducherry'],
    },
    'United States': {
        'California': ['Los Angeles', 'San Diego', 'San Francisco', 'San Jose'],
        'Texas': ['Austin', 'Dallas', 'Houston'],
        'New York': ['Buffalo', 'New York City'],
        'Michigan': ['Ann Arbor', 'Detroit'],
        'Washington': ['Redmond', 'Seattle'],
    },
    'United Kingdom': {
        'England': ['Birmingham', 'London', 'Manchester'],
        'Scotland': ['Edinburgh', 'Glasgow'],
    },
    'United Arab Emirates': {
        'Abu Dhabi': ['Abu Dhabi', 'Al Ain'],
        'Dubai': ['Dubai'],
        'Sharjah': ['Sharjah'],
    },
    'Singapore': {
        'Singapore': ['Singapore'],
    },
    'Malaysia': {
        'Kuala Lumpur': ['Kuala Lumpur'],
        'Penang': ['George Town'],
    },
    'Germany': {
        'Bavaria': ['Munich', 'Nuremberg'],
        'Baden-Wurttemberg': ['Stuttgart'],
    },
    'Australia': {
        'New South Wales': ['Sydney'],
        'Victoria': ['Melbourne'],
    },
    'Canada': {
        'Ontario': ['Ottawa', 'Toronto'],
        'British Columbia': ['Vancouver'],
    },
}


class LocationDirectory:
    """Resolves select options from a nested country/state/city mapping."""

    def __init__(self, dataset=None):
        self.dataset = dataset if dataset is not None else DEFAULT_LOCATIONS

    def countries(self):
        return sorted(self.dataset)

    def states(self, country):
        return sorted(self.dataset.get(country or '', {}))

    def cities(self, country, state):
        states = self.dataset.get(country or '', {})
        return list(states.get(state or '', []))

    def options_for(self, address):
        """Country, state and city option lists for one address-like object."""
        return {
            'countries': self.countries(),
            'states': self.states(address.country),
            'cities': self.cities(address.country, address.state),
        }


def apply_change(address, field, value):
    """
    Set ``field`` on any object with city/state/country attributes and
    clear the dependent fields below it.
    """
    value = value or ''
    if field == 'country':
        address.country = value
        address.state = ''
        address.city = ''
    elif field == 'state':
        address.state = value
        address.city = ''
    elif field == 'city':
        address.city = value
    else:
        raise ValueError(f"not a cascading address field: {field}")
    return address
