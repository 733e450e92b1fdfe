import polyline
import pytest

from turnbyturn.models import ManeuverType
from turnbyturn.osrm_adapter import build_instruction, classify_maneuver, route_from_osrm, strip_html

POINTS = [(39.92409, 32.845382), (39.9240467, 32.8451522), (39.9232599, 32.8441792), (39.9240102, 32.8452347)]


def osrm_response():
    encoded = polyline.encode(POINTS, 5)
    return {
        "code": "Ok",
        "routes": [
            {
                "geometry": encoded,
                "distance": 312.4,
                "duration": 61.0,
                "legs": [
                    {
                        "steps": [
                            {
                                "name": "Atatürk Blv.",
                                "distance": 120.0,
                                "mode": "driving",
                                "maneuver": {"type": "depart", "bearing_after": 250, "location": [32.845382, 39.92409]},
                            },
                            {
                                "name": "Main <b>Street</b> &amp; Co",
                                "distance": 150.0,
                                "mode": "driving",
                                "maneuver": {"type": "turn", "modifier": "left", "location": [32.8451522, 39.9240467]},
                            },
                            {
                                "name": "",
                                "distance": 42.4,
                                "mode": "driving",
                                "maneuver": {"type": "roundabout", "exit": 2, "location": [32.8441792, 39.9232599]},
                            },
                            {
                                "name": "",
                                "distance": 0,
                                "mode": "driving",
                                "maneuver": {"type": "arrive", "modifier": "right", "location": [32.8452347, 39.9240102]},
                            },
                        ]
                    }
                ],
            }
        ],
    }


def test_parses_route():
    response = osrm_response()
    route, msg = route_from_osrm(response)

    assert msg == "OK"
    assert route.identity == response["routes"][0]["geometry"]
    assert len(route.coordinates) == 4
    assert route.coordinates[0].lat == pytest.approx(39.92409)
    assert route.distance_meters == 312.4
    assert route.duration_seconds == 61.0

    kinds = [s.maneuver for s in route.steps]
    assert kinds == [ManeuverType.STRAIGHT, ManeuverType.LEFT, ManeuverType.ROUNDABOUT, ManeuverType.ARRIVE]
    assert route.steps[0].text == "Head west on Atatürk Blv."
    assert route.steps[1].text == "Turn left onto Main Street & Co"
    assert route.steps[1].road_name == "Main Street & Co"
    assert route.steps[2].text == "Enter the roundabout and take the 2nd exit"
    assert route.steps[3].text == "Arrive at your destination, on the right"
    assert route.steps[1].location.lat == pytest.approx(39.9240467)
    assert route.steps[1].location.lon == pytest.approx(32.8451522)


def test_geojson_geometry_is_accepted():
    response = osrm_response()
    response["routes"][0]["geometry"] = {
        "type": "LineString",
        "coordinates": [[lon, lat] for lat, lon in POINTS],
    }
    route, msg = route_from_osrm(response)
    assert msg == "OK"
    assert route.coordinates[-1].lon == pytest.approx(32.8452347)
    assert isinstance(route.identity, str)


@pytest.mark.parametrize(
    "response, fragment",
    [
        ({"code": "NoRoute", "message": "Impossible route between points"}, "Impossible"),
        ({"code": "Ok", "routes": []}, "No route"),
        ({"code": "Ok", "routes": [{"distance": 1}]}, "Malformed"),
        ("not json", "not a JSON object"),
    ],
)
def test_failures_are_reported(response, fragment):
    route, msg = route_from_osrm(response)
    assert route is None
    assert fragment in msg


def test_transit_step_carries_vehicle_label():
    response = osrm_response()
    step = response["routes"][0]["legs"][0]["steps"][1]
    step["mode"] = "ferry"
    step["ref"] = "F1"
    route, _ = route_from_osrm(response)
    assert route.steps[1].maneuver == ManeuverType.TRANSIT
    assert route.steps[1].vehicle_label == "F1"
    assert route.steps[1].text.startswith("Take the F1")


@pytest.mark.parametrize(
    "maneuver_type, modifier, expected",
    [
        ("turn", "sharp right", ManeuverType.SHARP_RIGHT),
        ("turn", "slight left", ManeuverType.SLIGHT_LEFT),
        ("continue", "uturn", ManeuverType.U_TURN),
        ("merge", "left", ManeuverType.MERGE),
        ("off ramp", "right", ManeuverType.RAMP),
        ("fork", "left", ManeuverType.FORK),
        ("exit rotary", "right", ManeuverType.ROUNDABOUT),
        ("new name", None, ManeuverType.STRAIGHT),
    ],
)
def test_classify_maneuver(maneuver_type, modifier, expected):
    assert classify_maneuver(maneuver_type, modifier) == expected


def test_instruction_texts():
    assert build_instruction("fork", "slight right", "A1") == "Keep right at the fork onto A1"
    assert build_instruction("on ramp", "left", None) == "Take the ramp on the left"
    assert build_instruction("continue", "uturn", None) == "Make a U-turn"
    assert build_instruction("new name", "straight", "Elm St") == "Continue onto Elm St"
    assert build_instruction("roundabout", None, "Ring", exit_number=11) == (
        "Enter the roundabout and take the 11th exit onto Ring"
    )


def test_strip_html():
    assert strip_html("<span>Main</span>   St") == "Main St"
    assert strip_html(None) == ""
