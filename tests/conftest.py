"""Shared fixtures for the dashboard tests."""

import pytest

from ev_dashboard.records import parse_records


SAMPLE_CSV = """VIN,County,City,State,PostalCode,ModelYear,Make,Model,ElectricVehicleType,Eligibility,ElectricRange,MSRP,LegislativeDistrict,DOLVehicleID,VehicleLocation,ElectricUtility,CensusTract
5YJ3E1EA7K123456,King,Seattle,WA,98101,2019,TESLA,MODEL 3,Battery Electric Vehicle (BEV),Clean Alternative Fuel Vehicle Eligible,220,0,43,100001,POINT (-122.33 47.61),CITY OF SEATTLE,53033008100
5YJYGDEE1L,King,Seattle,WA,98101,2020,TESLA,MODEL Y,Battery Electric Vehicle (BEV),Clean Alternative Fuel Vehicle Eligible,291,0,43,100002,POINT (-122.33 47.61),CITY OF SEATTLE,53033008100
1N4AZ0CP8D,Kitsap,Bremerton,WA,98310,2013,NISSAN,LEAF,Battery Electric Vehicle (BEV),Clean Alternative Fuel Vehicle Eligible,75,0,23,100003,POINT (-122.63 47.57),PUGET SOUND ENERGY INC,53035080800
1G1RC6S59H,Thurston,Olympia,WA,98501,2017,CHEVROLET,VOLT,Plug-in Hybrid Electric Vehicle (PHEV),Clean Alternative Fuel Vehicle Eligible,53,0,22,100004,POINT (-122.9 47.04),PUGET SOUND ENERGY INC,53067010100
WBY8P6C05L,King,Seattle,WA,98102,2020,BMW,I3,Battery Electric Vehicle (BEV),Clean Alternative Fuel Vehicle Eligible,153,0,43,100005,POINT (-122.32 47.63),CITY OF SEATTLE,53033006500
KNDCE3LG2L,Yakima,Yakima,WA,98902,2023,KIA,NIRO,Plug-in Hybrid Electric Vehicle (PHEV),Eligibility unknown as battery range has not been researched,,,14,100006,POINT (-120.5 46.6),PACIFICORP,53077000100
"""


@pytest.fixture
def sample_csv():
    return SAMPLE_CSV


@pytest.fixture
def records():
    return parse_records(SAMPLE_CSV)


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "ev.csv"
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    return path
