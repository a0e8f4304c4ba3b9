from datetime import datetime

from condition_reports.utils.formatters import (
    format_address,
    format_address_lines,
    format_date,
    format_duration,
    format_gps,
    safe_filename,
)


def test_address_lines():
    address = {
        "street_number": "45",
        "street_name": "Beach Road",
        "suburb": "Sea Point",
        "city": "Cape Town",
        "province": "Western Cape",
        "postal_code": "8005",
    }
    assert format_address_lines(address) == ("45 Beach Road, Sea Point", "Cape Town, Western Cape 8005")
    assert format_address(address) == "45 Beach Road, Sea Point, Cape Town, Western Cape 8005"


def test_gps_and_duration():
    assert format_gps({"latitude": -33.9, "longitude": 18.4}, precision=2) == "-33.90, 18.40"
    assert format_gps(None) == "GPS unavailable"
    assert format_duration(5) == "0:05"
    assert format_duration(None) == ""


def test_dates_and_filenames():
    assert format_date(datetime(2024, 3, 1, 10, 0)) == "2024-03-01"
    assert format_date(None) == ""
    assert safe_filename("Unit 4/B") == "Unit_4_B"
