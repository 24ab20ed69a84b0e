import json
from pathlib import Path

import pytest

from core.data import DatasetPaths, clear_caches, load_dashboard_data

ATHLETES_CSV = """code,name,gender,country_code,country,disciplines
1,LEDECKY Katie,Female,USA,United States,['Swimming']
2,MCINTOSH Summer,Female,CAN,Canada,['Swimming']
3,TITMUS Ariarne,Female,AUS,Australia,['Swimming']
4,OCALLAGHAN Mollie,Female,AUS,Australia,['Swimming']
5,MARCHAND Leon,Male,FRA,France,['Swimming']
6,NOBODY Known,Male,,,['Swimming']
7,BILES Simone,Female,USA,United States,['Artistic Gymnastics']
8,VAN ROUWENDAAL Sharon,Female,NED,Netherlands,"['Marathon Swimming', 'Swimming']"
"""

EVENTS_CSV = """event,tag,sport
Women's 100m Freestyle,swimming,Swimming
Women's 200m Freestyle,swimming,Swimming
Women's 4 x 100m Freestyle Relay,swimming,Swimming
Men's 100m Freestyle,swimming,Swimming
Women's 200m Butterfly,swimming,Swimming
Women's 10km,marathon-swimming,Marathon Swimming
"""

RESULTS_CSV = """stage,event_name,participant_type,participant_name,participant_country,participant_country_code,rank
Heat 1,Women's 100m Freestyle,Person,LEDECKY Katie,United States,USA,1
Heat 1,Women's 100m Freestyle,Person,TITMUS Ariarne,Australia,AUS,2
Heat 2,Women's 100m Freestyle,Person,MCINTOSH Summer,Canada,CAN,3
Final,Women's 100m Freestyle,Person,LEDECKY Katie,United States,USA,2
Final,Women's 100m Freestyle,Person,TITMUS Ariarne,Australia,AUS,1
Final,Women's 100m Freestyle,Person,MCINTOSH Summer,Canada,CAN,
Final,Women's 200m Freestyle,Person,OCALLAGHAN Mollie,Australia,AUS,1
Final,Women's 200m Freestyle,Person,TITMUS Ariarne,Australia,AUS,2
Final,Women's 200m Freestyle,Person,LEDECKY Katie,United States,USA,abc
Heat 1,Women's 200m Butterfly,Person,MCINTOSH Summer,Canada,CAN,1
Heat 1,Women's 200m Butterfly,Person,SMITH Regan,United States,USA,2
Heat 1,Women's 200m Butterfly,Person,ZHANG Yufei,China,CHN,5
Heat 2,Women's 200m Butterfly,Person,FLICKINGER Hali,United States,USA,3
Heat 2,Women's 200m Butterfly,Person,SLOW Swimmer,France,FRA,10
Semifinal 1,Women's 200m Butterfly,Person,MCINTOSH Summer,Canada,CAN,1
Semifinal 1,Women's 200m Butterfly,Person,SMITH Regan,United States,USA,3
Semifinal 2,Women's 200m Butterfly,Person,ZHANG Yufei,China,CHN,9
Semifinal 2,Women's 200m Butterfly,Person,FLICKINGER Hali,United States,USA,2
Final,Women's 200m Butterfly,Person,MCINTOSH Summer,Canada,CAN,1
Final,Women's 200m Butterfly,Person,SMITH Regan,United States,USA,4
Final,Women's 200m Butterfly,Person,FLICKINGER Hali,United States,USA,3
Swim-off,Women's 200m Butterfly,Person,ZHANG Yufei,China,CHN,1
Final,Women's 4 x 100m Freestyle Relay,Team,Australia,Australia,AUS,1
"""

MEDALLISTS_CSV = """medal_type,name,gender,country_code,country,discipline,event
Gold Medal,LEDECKY Katie,Female,USA,USA,Swimming,Women's 800m Freestyle
Gold Medal,LEDECKY Katie,Female,USA,USA,Swimming,Women's 1500m Freestyle
Silver Medal,SMITH Regan,Female,USA,USA,Swimming,Women's 200m Butterfly
Gold Medal,WALSH Gretchen,Female,USA,USA,Swimming,Women's 100m Butterfly
Gold Medal,TITMUS Ariarne,Female,AUS,AUS,Swimming,Women's 400m Freestyle
Gold Medal,OCALLAGHAN Mollie,Female,AUS,AUS,Swimming,Women's 200m Freestyle
Bronze Medal,MCKEOWN Kaylee,Female,AUS,AUS,Swimming,Women's 100m Backstroke
Gold Medal,MCINTOSH Summer,Female,CAN,CAN,Swimming,Women's 200m Butterfly
Silver Medal,MCINTOSH Summer,Female,CAN,CAN,Swimming,Women's 400m Freestyle
Bronze Medal,MASSE Kylie,Female,CAN,CAN,Swimming,Women's 200m Backstroke
Bronze Medal,NOBODY Known,Female,,,Swimming,Women's 50m Freestyle
Gold Medal,MARCHAND Leon,Male,FRA,FRA,Swimming,Men's 400m Individual Medley
Gold Medal,BILES Simone,Female,USA,USA,Artistic Gymnastics,Women's All-Around
,BROKEN Row,Female,USA,USA,Swimming,Women's 50m Freestyle
"""


def _square(x: float, y: float) -> dict:
    return {"type": "Polygon", "coordinates": [[[x, y], [x + 5, y], [x + 5, y + 5], [x, y + 5], [x, y]]]}


GEO = {
    "type": "FeatureCollection",
    "features": [
        {"type": "Feature", "properties": {"ADMIN": "United States of America", "ISO_A3": "USA"}, "geometry": _square(-100, 35)},
        {"type": "Feature", "properties": {"ADMIN": "Australia", "ISO_A3": "AUS"}, "geometry": _square(135, -25)},
        {"type": "Feature", "properties": {"ADMIN": "Canada", "ISO_A3": "CAN"}, "geometry": _square(-100, 55)},
        {"type": "Feature", "properties": {"ADMIN": "France", "ISO_A3": "FRA"}, "geometry": _square(2, 45)},
    ],
}


def write_dataset(data_dir: Path) -> DatasetPaths:
    paths = DatasetPaths.under(data_dir)
    paths.results.parent.mkdir(parents=True, exist_ok=True)
    paths.countries.parent.mkdir(parents=True, exist_ok=True)
    paths.athletes.write_text(ATHLETES_CSV, encoding="utf-8")
    paths.events.write_text(EVENTS_CSV, encoding="utf-8")
    paths.results.write_text(RESULTS_CSV, encoding="utf-8")
    paths.medallists.write_text(MEDALLISTS_CSV, encoding="utf-8")
    paths.countries.write_text(json.dumps(GEO), encoding="utf-8")
    return paths


@pytest.fixture(autouse=True)
def fresh_caches():
    clear_caches()
    yield
    clear_caches()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    write_dataset(tmp_path)
    return tmp_path


@pytest.fixture
def paths(data_dir: Path) -> DatasetPaths:
    return DatasetPaths.under(data_dir)


@pytest.fixture
def data_ctx(paths: DatasetPaths) -> dict:
    return load_dashboard_data(paths)
