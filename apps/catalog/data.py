"""
Static reference data: Green Tiers, point rates, circularity actions,
emission factors and SAF providers.

Loaded read-only at startup; nothing at runtime mutates it.
"""

GREEN_TIERS = [
    {
        'id': 'seedling',
        'name': 'Seedling',
        'level': 1,
        'min_points': 0,
        'max_points': 499,
        'multiplier': '1.0',
        'perks': [
            'Personal carbon footprint tracking',
            'Eco-Points on every sustainable action',
        ]
    },
    {
        'id': 'sapling',
        'name': 'Sapling',
        'level': 2,
        'min_points': 500,
        'max_points': 1999,
        'multiplier': '1.2',
        'perks': [
            '1.2x Eco-Points multiplier',
            'Free reusable cup at partner cafes',
        ]
    },
    {
        'id': 'tree',
        'name': 'Tree',
        'level': 3,
        'min_points': 2000,
        'max_points': 4999,
        'multiplier': '1.5',
        'perks': [
            '1.5x Eco-Points multiplier',
            'Priority green lounge access',
            'Quarterly impact report',
        ]
    },
    {
        'id': 'forest',
        'name': 'Forest',
        'level': 4,
        'min_points': 5000,
        'max_points': 9999,
        'multiplier': '1.75',
        'perks': [
            '1.75x Eco-Points multiplier',
            'Complimentary SAF top-up on one flight per year',
            'Invitations to sustainability events',
        ]
    },
    {
        'id': 'guardian',
        'name': 'Guardian',
        'level': 5,
        'min_points': 10000,
        'max_points': None,
        'multiplier': '2.0',
        'perks': [
            '2x Eco-Points multiplier',
            'Guardian recognition in the terminal',
            'Annual tree planting in your name',
        ]
    },
]

# Points per USD for monetary actions
POINTS_RATES = {
    'saf_contribution': '10',
    'carbon_offset': '5',
    'sustainable_merchant': '0.5',
}

CIRCULARITY_ACTIONS = [
    {
        'id': 'cup_as_a_service',
        'name': 'Cup-as-a-Service',
        'eco_points': 30,
        'waste_diverted_g': 15,
    },
    {
        'id': 'refuse_bag',
        'name': 'Refuse Bag, Bring Own Bag',
        'eco_points': 5,
        'waste_diverted_g': 8,
    },
    {
        'id': 'bottle_refill',
        'name': 'Water Bottle Refill Station',
        'eco_points': 10,
        'waste_diverted_g': 12,
    },
    {
        'id': 'plant_based_meal',
        'name': 'Plant-Based Meal',
        'eco_points': 50,
        'waste_diverted_g': 0,
    },
]

# kg CO2e per liter of fuel burned
EMISSION_FACTORS = {
    'aviation_fuel': '2.52',
    'saf_waste_based': '0.252',  # 90% lifecycle reduction
    'saf_imported': '0.504',  # 80% lifecycle reduction
}

SAF_CONSTANTS = {
    'cost_per_liter': '2.50',  # USD premium per liter
    'co2e_reduction_per_liter': '2.27',  # kg CO2e avoided per liter of waste-based SAF
    'registry_name': 'IATA Book-and-Claim Registry',
    'default_saf_type': 'waste_based',
    'default_provider': 'neste_singapore',
    'coverage_percentages': [25, 50, 75, 100],
}

SAF_PROVIDERS = [
    {
        'id': 'neste_singapore',
        'name': 'Neste Singapore',
    },
    {
        'id': 'shell_saf',
        'name': 'Shell Aviation SAF',
    },
]
