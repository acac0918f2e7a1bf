"""Ingestion pipeline tests."""

from datetime import datetime, timedelta, timezone

from gift_tracker.catalogue import Catalogue
from gift_tracker.codec import UNKNOWN, UNLIMITED, ZERO, Quantity
from gift_tracker.helpers import EPOCH
from gift_tracker.ingest import ingest

T0 = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
T1 = T0 + timedelta(minutes=10)

URL_A = "https://www.alik.cz/s/darky/1"
URL_B = "https://www.alik.cz/s/darky/2"


def _row(price="100", count="5", url=URL_A, name="Pohár", category="Trofeje", created="2026-10-01"):
    return [category, name, price, count, created, url]


def test_new_gifts_created():
    catalogue = Catalogue()
    report = ingest(catalogue, [_row(), _row(url=URL_B, name="Medaile", count="?")], T0)

    assert report.changed is True
    assert report.created == 2
    assert report.recorded == 2
    assert [g.identifier for g in catalogue.items()] == [URL_A, URL_B]

    gift = catalogue.find(URL_A)
    assert gift.name == "Pohár"
    assert gift.category == "Trofeje"
    assert gift.created_at == datetime(2026, 10, 1, tzinfo=timezone.utc)
    assert gift.history[0].price == 100
    assert gift.history[0].quantity == Quantity.number(5)
    assert gift.history[0].observed_at == T0
    assert catalogue.find(URL_B).history[0].quantity == UNKNOWN


def test_same_batch_twice_is_unchanged():
    catalogue = Catalogue()
    ingest(catalogue, [_row(), _row(url=URL_B)], T0)
    report = ingest(catalogue, [_row(), _row(url=URL_B)], T1)

    assert report.changed is False
    assert report.created == 0
    assert report.recorded == 0
    assert len(catalogue) == 2
    assert all(len(g.history) == 1 for g in catalogue.items())


def test_change_recorded_for_existing_gift():
    catalogue = Catalogue()
    ingest(catalogue, [_row(), _row(url=URL_B)], T0)
    report = ingest(catalogue, [_row(price="80"), _row(url=URL_B)], T1)

    assert report.changed is True
    assert report.recorded == 1
    history = catalogue.find(URL_A).history
    assert [(s.price, s.observed_at) for s in history] == [(100, T0), (80, T1)]


def test_unknown_count_does_not_change():
    catalogue = Catalogue()
    ingest(catalogue, [_row(count="3")], T0)
    report = ingest(catalogue, [_row(count="?")], T1)
    assert report.changed is False


def test_unlimited_count():
    catalogue = Catalogue()
    ingest(catalogue, [_row(count="∞")], T0)
    assert catalogue.find(URL_A).history[0].quantity == UNLIMITED
    assert ingest(catalogue, [_row(count="∞")], T1).changed is False


def test_empty_batch():
    catalogue = Catalogue()
    ingest(catalogue, [_row()], T0)
    report = ingest(catalogue, [], T1)
    assert report.changed is False
    assert report.rows == 0
    assert len(catalogue) == 1
    assert len(catalogue.find(URL_A).history) == 1


def test_malformed_fields_degrade():
    catalogue = Catalogue()
    report = ingest(catalogue, [_row(price="12a", count="lots", created="yesterday")], T0)

    assert report.changed is True
    assert report.degraded == 3
    gift = catalogue.find(URL_A)
    assert gift.history[0].price == 0
    assert gift.history[0].quantity == ZERO
    assert gift.created_at == EPOCH


def test_bad_row_does_not_abort_batch():
    catalogue = Catalogue()
    rows = [["Trofeje", "Short row"], _row(url=" "), _row(url=URL_B)]
    report = ingest(catalogue, rows, T0)

    assert report.skipped == 2
    assert report.rows == 3
    assert [g.identifier for g in catalogue.items()] == [URL_B]


def test_url_is_stripped():
    catalogue = Catalogue()
    ingest(catalogue, [_row(url=f"  {URL_A} ")], T0)
    assert catalogue.find(URL_A) is not None
