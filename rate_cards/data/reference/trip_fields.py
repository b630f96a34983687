"""
Trip Field Names

Standard keys of a trip record. Conditions may reference any other key the
caller supplies; these are the ones the engine itself reads.
"""

ID = "id"
ORIGIN = "origin"
DESTINATION = "destination"
VEHICLE_TYPE = "vehicle_type"
DISTANCE = "distance"   # km
WEIGHT = "weight"       # kg
VOLUME = "volume"       # cbm

# Rate type value -> trip field multiplied by the base rate
RATE_TYPE_FIELDS = {
    "PER_DISTANCE": DISTANCE,
    "PER_WEIGHT": WEIGHT,
    "PER_VOLUME": VOLUME,
}
