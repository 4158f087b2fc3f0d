from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

from clinicstock.services.alert_service import (
    classify_products,
    count_alerts,
    dashboard_summary,
    build_alert_digest,
    expiry_badge,
)

TODAY = date(2025, 3, 10)


def product(name, days, current=10, minimum=5, cost="10.00"):
    return SimpleNamespace(
        id=uuid4(),
        name=name,
        photo_url=None,
        current_stock=current,
        minimum_stock=minimum,
        unit="Un",
        expiry_date=TODAY + timedelta(days=days),
        cost_price=Decimal(cost),
    )


def names(items):
    return [item["name"] for item in items]


def test_expiry_buckets_are_independent():
    products = [
        product("vencido", -1),
        product("hoje", 0),
        product("sete", 7),
        product("oito", 8),
        product("trinta", 30),
        product("trinta e um", 31),
    ]
    alerts = classify_products(products, TODAY)

    assert names(alerts["expired"]) == ["vencido"]
    assert names(alerts["expiring_7"]) == ["hoje", "sete"]
    assert names(alerts["expiring_30"]) == ["hoje", "sete", "oito", "trinta"]
    assert alerts["low_stock"] == []


def test_low_stock_is_independent_of_expiry():
    alerts = classify_products([product("seringa", 3, current=2, minimum=5)], TODAY)

    assert names(alerts["expiring_7"]) == ["seringa"]
    assert names(alerts["expiring_30"]) == ["seringa"]
    assert names(alerts["low_stock"]) == ["seringa"]
    assert count_alerts(alerts) == 3


def test_low_stock_boundary_is_inclusive():
    alerts = classify_products([product("luva", 90, current=5, minimum=5)], TODAY)
    assert names(alerts["low_stock"]) == ["luva"]


def test_zero_stock_products_never_alert():
    alerts = classify_products([product("esgotado", -5, current=0), product("zerado", 3, current=0)], TODAY)
    assert count_alerts(alerts) == 0


def test_alert_items_carry_days_until_expiry():
    alerts = classify_products([product("ácido", 4)], TODAY)
    assert alerts["expiring_7"][0]["days_until_expiry"] == 4


def test_expiry_badge_levels():
    assert expiry_badge(TODAY - timedelta(days=2), TODAY) == {"days": -2, "level": "expired", "label": "Vencido"}
    assert expiry_badge(TODAY + timedelta(days=6), TODAY)["level"] == "critical"
    assert expiry_badge(TODAY + timedelta(days=7), TODAY)["level"] == "warning"
    assert expiry_badge(TODAY + timedelta(days=30), TODAY)["level"] == "warning"
    assert expiry_badge(TODAY + timedelta(days=31), TODAY)["level"] == "ok"


def test_dashboard_summary():
    products = [
        product("a", -3, current=4, cost="5.00"),
        product("b", 2, current=1, minimum=5, cost="20.00"),
        product("c", 15, current=10, cost="1.50"),
        product("d", 45, current=0),
        product("e", 60),
        product("f", 70),
        product("g", 80),
        product("h", 90),
    ]
    summary = dashboard_summary(products, TODAY)

    assert summary["total_products"] == 8
    assert summary["expiring_30_count"] == 2
    assert summary["low_stock_count"] == 2
    assert summary["total_value"] == 4 * 5 + 1 * 20 + 10 * 1.5 + 4 * 10 * 10
    assert [item["name"] for item in summary["next_expiries"]] == ["b", "c", "d", "e", "f"]
    assert summary["has_urgent_expiries"] is True


def test_dashboard_without_urgent_expiries():
    summary = dashboard_summary([product("longe", 120)], TODAY)
    assert summary["expiring_30_count"] == 0
    assert summary["has_urgent_expiries"] is False


def test_alert_digest_messages():
    digest = build_alert_digest(
        [product("botox", 5), product("luva", 60, current=1), product("zerado", 1, current=0)],
        TODAY,
    )

    assert digest["alerts_found"] == 2
    assert digest["expiring_soon"] == ["botox"]
    assert digest["low_stock"] == ["luva"]
    assert digest["title"] == "Alerta de Estoque!"
    assert digest["body"] == "Você tem 1 produto(s) vencendo e 1 com estoque baixo."


def test_alert_digest_only_expiring():
    digest = build_alert_digest([product("botox", 0)], TODAY)
    assert digest["body"] == "Você tem 1 produto(s) vencendo em breve."


def test_alert_digest_empty():
    digest = build_alert_digest([product("ok", 200)], TODAY)
    assert digest["alerts_found"] == 0
    assert digest["title"] == ""
