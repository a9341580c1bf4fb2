from __future__ import annotations

from fastapi import APIRouter, HTTPException

from data.stations import LINE_COLORS, all_stations, get_station

router = APIRouter()


@router.get("/stations")
def list_stations():
    return {
        "ok": True,
        "line_colors": LINE_COLORS,
        "items": [s.model_dump(mode="json", exclude_none=True) for s in all_stations()],
    }


@router.get("/stations/{station_id}")
def station_detail(station_id: str):
    station = get_station(station_id)
    if station is None:
        raise HTTPException(status_code=404, detail="unknown_station")
    return {
        "ok": True,
        "station": station.model_dump(mode="json", exclude_none=True),
        "has_map_placement": station.has_map_placement,
    }
