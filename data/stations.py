"""Bundled Kaohsiung MRT station reference data.

Loaded once at import time and never mutated. ``coords`` place each station
on the static route diagram; ``real_coords`` is optional and stations without
it are listed but cannot be opened on the interactive map.

Only O7 (文化中心) carries surveyed diagram and map positions. The other
stations use approximate diagram coordinates laid out along their lines.
R8 is listed without ``real_coords`` until its map position is confirmed.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from models.station import DiagramCoords, RealCoords, Station

LINE_COLORS: Dict[str, str] = {
    "red": "#DC0451",
    "orange": "#FF6F00",
}

_STATIONS: Tuple[Station, ...] = (
    Station(
        id="O7",
        name="文化中心",
        lines=["orange"],
        coords=DiagramCoords(x="43.45%", y="61.28%"),
        plus_code="87QJ+GR 高雄市 前金區",
        real_coords=RealCoords(lat=22.630488326745954, lng=120.31758363974788),
    ),
    Station(
        id="O5",
        name="美麗島",
        lines=["red", "orange"],
        coords=DiagramCoords(x="36.10%", y="61.28%"),
        real_coords=RealCoords(lat=22.631390, lng=120.302010),
    ),
    Station(
        id="O4",
        name="市議會",
        lines=["orange"],
        coords=DiagramCoords(x="31.72%", y="61.28%"),
        real_coords=RealCoords(lat=22.631710, lng=120.295760),
    ),
    Station(
        id="O1",
        name="西子灣",
        lines=["orange"],
        coords=DiagramCoords(x="18.05%", y="61.28%"),
        real_coords=RealCoords(lat=22.621550, lng=120.274130),
    ),
    Station(
        id="R9",
        name="中央公園",
        lines=["red"],
        coords=DiagramCoords(x="36.10%", y="66.90%"),
        real_coords=RealCoords(lat=22.624560, lng=120.301220),
    ),
    Station(
        id="R11",
        name="高雄車站",
        lines=["red"],
        coords=DiagramCoords(x="36.10%", y="52.40%"),
        real_coords=RealCoords(lat=22.639550, lng=120.302240),
    ),
    Station(
        id="R8",
        name="三多商圈",
        lines=["red"],
        coords=DiagramCoords(x="38.40%", y="71.35%"),
    ),
)

_BY_ID: Dict[str, Station] = {s.id: s for s in _STATIONS}


def all_stations() -> List[Station]:
    return list(_STATIONS)


def get_station(station_id: str) -> Optional[Station]:
    return _BY_ID.get(station_id or "")


def is_known_station(station_id: str) -> bool:
    return (station_id or "") in _BY_ID
