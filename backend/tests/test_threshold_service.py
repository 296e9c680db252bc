"""
Low-stock threshold tests.

Verifies:
- severity boundaries (200 low, 100 critical) on the decrease path
- an alert is stored and emailed for every qualifying decrease (no cooldown)
- anonymous decreases never alert
- delivery failure never affects the stored alert or the quantity
"""

from decimal import Decimal

import pytest

from smarttrack.extensions import db
from smarttrack.models import Enquiry
from smarttrack.services import inventory_service, threshold_service


def _alerts():
    return db.session.query(Enquiry).filter_by(kind="LOW_STOCK").order_by(Enquiry.id.asc()).all()


@pytest.mark.parametrize("quantity,expected", [
    (Decimal("1000"), None),
    (Decimal("200"), None),
    (Decimal("199.999"), "LOW_STOCK"),
    (Decimal("150"), "LOW_STOCK"),
    (Decimal("100"), "LOW_STOCK"),
    (Decimal("99.999"), "CRITICALLY_LOW"),
    (Decimal("0"), "CRITICALLY_LOW"),
])
def test_classify_boundaries(app, quantity, expected):
    assert threshold_service.classify(quantity) == expected


def test_classify_follows_configured_thresholds(app):
    app.config["LOW_STOCK_THRESHOLD"] = 50
    app.config["CRITICAL_STOCK_THRESHOLD"] = 10

    assert threshold_service.classify(Decimal("60")) is None
    assert threshold_service.classify(Decimal("20")) == "LOW_STOCK"
    assert threshold_service.classify(Decimal("5")) == "CRITICALLY_LOW"


def test_alert_message_format():
    message = threshold_service.alert_message("Rice", Decimal("150.000"), Decimal("60.500"))
    assert message == "Low stock alert: Rice is now at 150kg after reduction of 60.5kg"


def test_decrease_below_low_mark_stores_and_emails_alert(app, alice, outbox):
    inventory_service.add_or_increase_stock("Rice", 250, staff_username="alice")
    inventory_service.decrease_stock("Rice", 100, staff_username="alice")

    alerts = _alerts()
    assert len(alerts) == 1
    alert = alerts[0]
    assert alert.product_name == "Rice"
    assert alert.quantity == 100
    assert alert.current_stock == 150
    assert alert.severity == "LOW_STOCK"
    assert alert.message == "Low stock alert: Rice is now at 150kg after reduction of 100kg"
    assert alert.staff_username == "alice"
    assert alert.staff_name == "Alice Smith"
    assert alert.staff_email == "alice@smarttrack.test"

    assert len(outbox) == 1
    email = outbox[0]
    assert email.recipient == "admin@smarttrack.test"
    assert email.subject == "LOW STOCK ALERT: Rice below 200kg"
    assert "Current quantity: 150 kg" in email.body
    assert "Reduced by: 100 kg" in email.body
    assert "Status: LOW STOCK" in email.body
    assert "Alice Smith" in email.body
    assert email.html and "Rice" in email.html


def test_decrease_below_critical_mark_is_critical(app, alice, outbox):
    inventory_service.add_or_increase_stock("Rice", 250)
    inventory_service.decrease_stock("Rice", 200, staff_username="alice")

    alert = _alerts()[0]
    assert alert.severity == "CRITICALLY_LOW"
    assert alert.current_stock == 50
    assert "Status: CRITICALLY LOW" in outbox[0].body


def test_landing_exactly_on_low_mark_does_not_alert(app, alice, outbox):
    inventory_service.add_or_increase_stock("Rice", 250)
    inventory_service.decrease_stock("Rice", 50, staff_username="alice")

    assert _alerts() == []
    assert outbox == []


def test_every_qualifying_decrease_alerts_again(app, alice, outbox):
    inventory_service.add_or_increase_stock("Rice", 190)
    inventory_service.decrease_stock("Rice", 10, staff_username="alice")
    inventory_service.decrease_stock("Rice", 10, staff_username="alice")
    inventory_service.decrease_stock("Rice", 0, staff_username="alice")

    assert [a.current_stock for a in _alerts()] == [180, 170, 170]
    assert len(outbox) == 3


def test_anonymous_decrease_never_alerts(app, outbox, caplog):
    inventory_service.add_or_increase_stock("Rice", 150)
    inventory_service.decrease_stock("Rice", 100)

    assert inventory_service.get_stock("Rice").quantity == 50
    assert _alerts() == []
    assert outbox == []
    assert "no acting staff" in caplog.text


def test_unknown_staff_username_still_alerts(app, outbox, caplog):
    inventory_service.add_or_increase_stock("Rice", 150)
    inventory_service.decrease_stock("Rice", 10, staff_username="ghost")

    alert = _alerts()[0]
    assert alert.staff_username == "ghost"
    assert alert.staff_name is None
    assert alert.staff_email is None
    assert len(outbox) == 1
    assert "unknown staff" in caplog.text


def test_delivery_failure_keeps_alert_and_quantity(app, alice, transport, caplog):
    transport.fail_with = "provider down"
    inventory_service.add_or_increase_stock("Rice", 250)

    stock = inventory_service.decrease_stock("Rice", 100, staff_username="alice")

    assert stock.quantity == 150
    assert len(_alerts()) == 1
    assert transport.outbox == []
    assert "provider down" in caplog.text


def test_missing_admin_email_keeps_alert(app, alice, outbox, caplog):
    app.config["ADMIN_EMAIL"] = None
    inventory_service.add_or_increase_stock("Rice", 250)

    inventory_service.decrease_stock("Rice", 100, staff_username="alice")

    assert len(_alerts()) == 1
    assert outbox == []
    assert "no recipient configured" in caplog.text


def test_evaluate_returns_none_above_mark(app, alice, outbox):
    result = threshold_service.evaluate_stock_level("Rice", Decimal("500"), Decimal("1"), "alice")

    assert result is None
    assert _alerts() == []
    assert outbox == []
