import pytest

from subtrack.models import RawSubscription, Report, Subscription

FULL = {
    "subscription_id": 20,
    "user_id": "60601fee-2bf1-4721-ae6f-7636e79a0cba",
    "service_name": "Yandex Plus",
    "price": 400,
    "start_date": "07-2025",
    "end_date": "12-2025",
}


def test_json_round_trip():
    assert RawSubscription.from_json(FULL).to_json() == FULL


def test_from_json_reads_fields():
    raw = RawSubscription.from_json(FULL)
    assert raw.sid == 20
    assert raw.provider == "Yandex Plus"
    assert raw.price == 400
    assert raw.end == "12-2025"


def test_missing_fields_take_defaults():
    raw = RawSubscription.from_json({"service_name": "Yandex Plus"})
    assert raw == RawSubscription(provider="Yandex Plus")
    assert raw.price is None
    assert raw.uid == ""


def test_null_strings_become_empty():
    raw = RawSubscription.from_json({"user_id": None, "end_date": None})
    assert raw.uid == ""
    assert raw.end == ""


def test_to_json_omits_empty_end_date():
    body = RawSubscription(uid="u", provider="p", price=400, start="07-2025").to_json()
    assert "end_date" not in body
    assert body["subscription_id"] is None
    assert body["start_date"] == "07-2025"


@pytest.mark.parametrize(
    "data",
    [
        [1, 2],
        "text",
        {"price": "400"},
        {"price": -1},
        {"price": 400.5},
        {"price": True},
        {"subscription_id": "20"},
        {"user_id": 5},
        {"start_date": 7},
    ],
)
def test_from_json_rejects_bad_input(data):
    with pytest.raises(ValueError):
        RawSubscription.from_json(data)


def test_report_to_json():
    assert Report(300).to_json() == {"total": 300}
    assert Report().to_json() == {"total": Report().total}


def test_subscription_table_columns():
    assert set(Subscription.__table__.c.keys()) == {
        "subscription_id",
        "user_id",
        "service_name",
        "price",
        "start_date",
        "end_date",
    }
    assert Subscription.__table__.c["end_date"].nullable
    assert not Subscription.__table__.c["price"].nullable