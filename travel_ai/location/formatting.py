from travel_ai.models import Coordinate, LocationSpec

LOOKING_FOR_LOCATION = "Looking for your physical location by GPS..."


def coordinate_to_prompt(coordinate: Coordinate) -> str:
    return f"Latitude: {coordinate.latitude}, Longitude: {coordinate.longitude}."


def location_to_prompt(location: LocationSpec) -> str:
    """Render a LocationSpec the way the prompt templates expect it."""
    if location.coordinate is not None:
        return coordinate_to_prompt(location.coordinate)
    return location.place


def to_detailed_string(coordinate: Coordinate) -> str:
    """Multi-line readout for the "Your Location" panel."""
    details = f"• Latitude: {coordinate.latitude:.4f}\n"
    details += f"• Longitude: {coordinate.longitude:.4f}\n"
    if coordinate.altitude != 0:
        details += f"• Altitude: {coordinate.altitude:.2f} meters\n"
    if coordinate.accuracy >= 0:
        details += f"• Accuracy: {coordinate.accuracy:.2f} meters"
    return details
