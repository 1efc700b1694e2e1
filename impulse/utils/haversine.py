from math import radians, sin, cos, sqrt, asin

# Earth's radius in kilometers
R = 6371.0

def haversine(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance between two campus points in kilometers.

    Args:
        lat1: Latitude of point 1.
        lng1: Longitude of point 1.
        lat2: Latitude of point 2.
        lng2: Longitude of point 2.

    Returns:
        Distance between the two points in kilometers.
    """
    lat1, lng1, lat2, lng2 = map(radians, [lat1, lng1, lat2, lng2])

    dlng = lng2 - lng1
    dlat = lat2 - lat1

    a = sin(dlat / 2)**2 + cos(lat1) * cos(lat2) * sin(dlng / 2)**2
    return R * 2 * asin(sqrt(a))

def distance_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Same as `haversine`, in meters. Building discrepancies are reported in meters."""
    return haversine(lat1, lng1, lat2, lng2) * 1000.0
