"""
CSV and JSON export rendering
"""
import json
from decimal import Decimal

from hotelops.schemas.room import Room
from hotelops.utils.export import export_response, to_csv, to_json


def test_csv_escaping():
    records = [
        {"name": "Smith, John", "note": 'said "hi"', "nights": 3},
        {"name": "Plain", "note": None, "nights": 1},
    ]
    assert to_csv(records) == (
        'name,note,nights\n'
        '"Smith, John","said ""hi""",3\n'
        'Plain,,1'
    )


def test_csv_header_from_first_record():
    records = [{"a": 1, "b": 2}, {"b": 3, "c": 4}]
    assert to_csv(records) == "a,b\n1,2\n,3"


def test_csv_booleans_and_nested_values():
    assert to_csv([{"active": True, "tags": ["wifi"]}]) == 'active,tags\ntrue,"[""wifi""]"'


def test_csv_empty():
    assert to_csv([]) == ""


def test_csv_from_models(room_row):
    room = Room.model_validate({**room_row, "room_types": None})
    lines = to_csv([room]).split("\n")
    assert lines[0].startswith("id,room_type_id,room_number,floor,status")
    assert lines[1].startswith("room-101,rt-deluxe,101,1,available")


def test_json_indented():
    assert to_json({"total": Decimal("870.00")}) == json.dumps({"total": 870.0}, indent=2)


def test_export_response_attachment():
    response = export_response([{"a": 1}], "rooms-2024-01-10", "csv")
    assert response.headers["content-disposition"] == 'attachment; filename="rooms-2024-01-10.csv"'
    assert response.media_type.startswith("text/csv")
    assert response.body == b"a\n1"
