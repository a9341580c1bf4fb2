import pytest

from fakes import make_venue
from favorites.errors import CapacityExceeded, Duplicate, NotFound, ReadFailure, ValidationFailure, WriteFailure
from favorites.adapter import FavoritesStoreAdapter
from models.favorites import FavoriteStore
from models.schema import favorites_path

STATION = "O7"


def _stored(db, uid="u1", station=STATION):
    return db.documents_in(favorites_path(uid, station))


def test_add_to_empty_scope_is_listed(adapter, db):
    store = adapter.add("u1", STATION, make_venue(1, name="Cafe A", lat=1, lng=1))
    assert store.id
    items = adapter.list("u1", STATION)
    assert [(s.google_place_id, s.name, s.lat, s.lng) for s in items] == [("p1", "Cafe A", 1, 1)]
    assert items[0].added_at is not None


def test_add_same_place_twice_is_duplicate(adapter, db):
    adapter.add("u1", STATION, make_venue(1))
    writes = db.writes
    with pytest.raises(Duplicate):
        adapter.add("u1", STATION, make_venue(1, name="Renamed"))
    assert db.writes == writes
    assert len(adapter.list("u1", STATION)) == 1


def test_sixteenth_add_is_rejected_without_write(adapter, db):
    for n in range(1, 16):
        adapter.add("u1", STATION, make_venue(n))
    writes = db.writes
    with pytest.raises(CapacityExceeded) as exc:
        adapter.add("u1", STATION, make_venue(99))
    assert exc.value.context["limit"] == 15
    assert db.writes == writes
    assert len(adapter.list("u1", STATION)) == 15


def test_capacity_is_checked_before_duplicates(adapter):
    for n in range(1, 16):
        adapter.add("u1", STATION, make_venue(n))
    with pytest.raises(CapacityExceeded):
        adapter.add("u1", STATION, make_venue(1))


def test_scopes_are_independent(adapter):
    adapter.add("u1", STATION, make_venue(1))
    adapter.add("u1", "O5", make_venue(1))
    adapter.add("u2", STATION, make_venue(1))
    assert len(adapter.list("u1", STATION)) == 1
    assert len(adapter.list("u1", "O5")) == 1
    assert len(adapter.list("u2", STATION)) == 1


def test_only_allow_listed_fields_are_written(adapter, db):
    venue = make_venue(1, website="https://x.test", phoneNumber="07-123", types=["cafe"], rating=4.5)
    adapter.add("u1", STATION, venue)
    (doc,) = _stored(db)
    assert set(doc) == {"googlePlaceId", "name", "address", "lat", "lng", "rating", "addedAt"}


def test_optional_fields_are_kept_when_present(adapter, db):
    venue = make_venue(
        1,
        rating=4.2,
        userRatingsTotal=88,
        mainPhotoUrl="https://photos.test/a",
        openingHoursText=["星期一: 08:00–17:00"],
    )
    adapter.add("u1", STATION, venue)
    (doc,) = _stored(db)
    assert doc["userRatingsTotal"] == 88
    assert doc["mainPhotoUrl"] == "https://photos.test/a"
    assert doc["openingHoursText"] == ["星期一: 08:00–17:00"]


def test_list_is_ordered_by_added_at(adapter):
    for n in (3, 1, 2):
        adapter.add("u1", STATION, make_venue(n))
    assert [s.google_place_id for s in adapter.list("u1", STATION)] == ["p3", "p1", "p2"]


def test_remove_then_list(adapter):
    a = adapter.add("u1", STATION, make_venue(1))
    adapter.add("u1", STATION, make_venue(2))
    adapter.remove("u1", STATION, a.id)
    assert [s.google_place_id for s in adapter.list("u1", STATION)] == ["p2"]


def test_remove_missing_is_not_found(adapter):
    with pytest.raises(NotFound):
        adapter.remove("u1", STATION, "nope")


@pytest.mark.parametrize("uid,station", [("", STATION), ("u1", ""), ("u1", "ZZ9")])
def test_missing_context_is_validation_failure(adapter, uid, station):
    with pytest.raises(ValidationFailure):
        adapter.add(uid, station, make_venue(1))


def test_venue_without_coordinates_is_rejected(adapter, db):
    with pytest.raises(ValidationFailure):
        adapter.add("u1", STATION, make_venue(1, lat=None))
    assert db.writes == 0


def test_store_errors_map_to_read_and_write_failures(adapter, db):
    db.fail_reads = True
    with pytest.raises(ReadFailure):
        adapter.add("u1", STATION, make_venue(1))
    with pytest.raises(ReadFailure):
        adapter.list("u1", STATION)

    db.fail_reads = False
    db.fail_writes = True
    with pytest.raises(WriteFailure):
        adapter.add("u1", STATION, make_venue(1))
    assert _stored(db) == []


def test_remove_write_failure_leaves_record(adapter, db):
    a = adapter.add("u1", STATION, make_venue(1))
    db.fail_writes = True
    with pytest.raises(WriteFailure):
        adapter.remove("u1", STATION, a.id)
    assert len(_stored(db)) == 1


def test_soft_limit_overshoot_is_logged(favorites_repo, db, caplog):
    adapter = FavoritesStoreAdapter(repo=favorites_repo, max_items=2)
    adapter.add("u1", STATION, make_venue(1))
    # Simulate a concurrent writer sneaking in after our checks.
    original_insert = favorites_repo.insert

    def racing_insert(uid, sid, store):
        original_insert(uid, sid, FavoriteStore.from_venue(make_venue(50)))
        return original_insert(uid, sid, store)

    favorites_repo.insert = racing_insert
    with caplog.at_level("WARNING", logger="metrofav.favorites"):
        adapter.add("u1", STATION, make_venue(2))
    assert any(r.getMessage() == "favorites_soft_limit_exceeded" for r in caplog.records)


def test_zero_capacity_is_honoured(favorites_repo, db):
    adapter = FavoritesStoreAdapter(repo=favorites_repo, max_items=0)
    with pytest.raises(CapacityExceeded):
        adapter.add("u1", STATION, make_venue(1))
    assert db.writes == 0


def test_records_are_stored_under_their_station_scope(adapter, db):
    adapter.add("u1", "O5", make_venue(1))
    assert [d["googlePlaceId"] for d in _stored(db, "u1", "O5")] == ["p1"]
    assert _stored(db, "u1", STATION) == []
