from data.stations import LINE_COLORS, all_stations, get_station, is_known_station


def test_station_ids_are_unique():
    ids = [s.id for s in all_stations()]
    assert len(ids) == len(set(ids))


def test_every_line_has_a_color():
    for s in all_stations():
        assert s.lines
        assert all(line in LINE_COLORS for line in s.lines)


def test_culture_center():
    s = get_station("O7")
    assert s.name == "文化中心"
    assert (s.coords.x, s.coords.y) == ("43.45%", "61.28%")
    assert s.has_map_placement


def test_unknown_station():
    assert get_station("nowhere") is None
    assert not is_known_station("nowhere")
    assert not is_known_station("")


def test_some_station_lacks_map_placement():
    assert any(not s.has_map_placement for s in all_stations())
