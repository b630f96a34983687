"""
Rate Item Matching Configuration

Matching keys on a rate item (origin, destination, vehicle type) are either a
concrete value or the wildcard. Concrete values are compared to the trip's
field by exact string equality, no normalization.

Condition operands for list-style operators (IN, NOT_IN, BETWEEN) are a single
raw string split on LIST_DELIMITER, each entry trimmed of whitespace.
"""

WILDCARD = "*"          # Matches any trip value
LIST_DELIMITER = ","    # "10,20" for BETWEEN, "MUM,DEL,BLR" for IN
