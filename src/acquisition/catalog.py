"""Known industries and countries of the lead dataset.

Each industry maps to its OpenStreetMap tag filters. An industry matches an
element when any of its alternatives matches; an alternative matches when
all of its ``key=value`` filters do.
"""

INDUSTRY_OSM_TAGS: dict[str, tuple[tuple[str, ...], ...]] = {
    # Personal care & beauty
    "tattoo": (("shop=tattoo",),),
    "beauty": (("shop=beauty",),),
    "barber": (("shop=hairdresser",), ("shop=barber",)),
    "spa": (("leisure=spa",), ("amenity=spa",)),
    "nail_salon": (("shop=beauty", "beauty=nails"),),
    # Health & wellness
    "gym": (
        ("leisure=fitness_centre",),
        ("leisure=sports_centre",),
        ("amenity=gym",),
    ),
    "dentist": (("amenity=dentist",),),
    "pharmacy": (("amenity=pharmacy",),),
    "massage": (("shop=massage",), ("amenity=massage",)),
    # Food & beverage
    "restaurant": (("amenity=restaurant",),),
    "cafe": (("amenity=cafe",),),
    "bar": (("amenity=bar",), ("amenity=pub",)),
    "bakery": (("shop=bakery",),),
    # Automotive
    "car_repair": (("shop=car_repair",),),
    "car_wash": (("amenity=car_wash",),),
    "car_dealer": (("shop=car",),),
    # Retail
    "clothing": (("shop=clothes",),),
    "convenience": (("shop=convenience",),),
    # Professional services
    "lawyer": (("office=lawyer",),),
    "accountant": (("office=accountant",),),
}

KNOWN_INDUSTRIES: tuple[str, ...] = tuple(INDUSTRY_OSM_TAGS)

# ISO 3166-1 alpha-2
KNOWN_COUNTRIES: tuple[str, ...] = (
    # Americas
    "US", "CA", "MX", "BR", "AR", "CL", "CO", "PE", "VE", "EC",
    # Western Europe
    "GB", "DE", "FR", "ES", "IT", "NL", "BE", "CH", "AT", "SE",
    "NO", "DK", "FI", "PL", "CZ", "HU", "RO", "PT", "GR", "IE",
    # Asia-Pacific
    "JP", "CN", "IN", "AU", "NZ", "SG", "MY", "TH", "VN", "PH",
    "ID", "KR", "TW", "HK",
    # Middle East
    "AE", "SA", "IL", "TR", "EG",
    # Africa
    "ZA", "NG", "KE", "MA",
    # Eastern Europe
    "RU", "UA", "BY",
    # Rest of Europe
    "BG", "HR", "SI", "SK", "LT", "LV", "EE",
)
