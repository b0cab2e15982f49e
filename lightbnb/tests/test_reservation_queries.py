def test_reservations_ordered_and_limited(service, seeded):
    rows = service.get_all_reservations(seeded["users"]["bob"], 3).unwrap()
    assert len(rows) == 3
    starts = [r["start_date"] for r in rows]
    assert starts == sorted(starts)
    assert starts == ["2020-01-10", "2021-05-01", "2022-03-03"]
    assert all("average_rating" in r for r in rows)


def test_reservation_row_carries_reservation_and_property(service, seeded):
    rows = service.get_all_reservations(seeded["users"]["bob"]).unwrap()
    first = rows[0]
    assert first["id"] == seeded["reservations"]["r2"]
    assert first["property_id"] == seeded["properties"]["p1"]
    assert first["title"] == "Loft"
    assert first["average_rating"] == 4.0


def test_reservations_on_unreviewed_property_are_omitted(service, seeded):
    rows = service.get_all_reservations(seeded["users"]["bob"]).unwrap()
    ids = {r["id"] for r in rows}
    assert seeded["reservations"]["r4"] not in ids
    assert len(rows) == 4


def test_include_unreviewed_reservations(service, seeded):
    rows = service.get_all_reservations(seeded["users"]["bob"], include_unreviewed=True).unwrap()
    assert len(rows) == 5
    assert rows[0]["id"] == seeded["reservations"]["r4"]
    assert rows[0]["average_rating"] is None


def test_guest_without_reservations_gets_empty_list(service, seeded):
    res = service.get_all_reservations(seeded["users"]["alice"])
    assert res.ok
    assert res.value == []
