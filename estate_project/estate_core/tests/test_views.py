import json

import pytest
from django.contrib.auth.models import Permission
from django.urls import reverse

from .. import services
from ..models import Layout


def post_json(client, name, payload, **kwargs):
    return client.post(
        reverse(f"estate_core:{name}", kwargs=kwargs or None),
        data=json.dumps(payload),
        content_type="application/json",
    )


@pytest.fixture
def clerk(client, django_user_model):
    user = django_user_model.objects.create_user(username="clerk", password="pw")
    client.force_login(user)
    return user


@pytest.fixture
def estate_client():
    return services.create_client({"name": "Ravi Kumar", "phone": "+91-9845000001"})


@pytest.mark.django_db
def test_anonymous_requests_are_rejected(client):
    response = post_json(client, "layout-create", {"name": "Green Meadows"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "unauthenticated"
    assert not Layout.objects.exists()


@pytest.mark.django_db
def test_mutations_need_post(client, clerk):
    response = client.get(reverse("estate_core:layout-create"))

    assert response.status_code == 405


@pytest.mark.django_db
def test_create_layout(client, clerk):
    response = post_json(
        client, "layout-create", {"name": "Green Meadows", "location": "Outer Ring Road", "total_plots": 40}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["data"]["name"] == "Green Meadows"
    layout = Layout.objects.get(pk=body["data"]["id"])
    assert services.activity_for("layout", layout.pk).get().actor == clerk


@pytest.mark.django_db
def test_black_fields_hidden_without_permission(client, clerk, estate_client):
    payload = {"client_id": estate_client.pk, "amount": "1000000.00", "market_amount": "1600000.00"}

    body = post_json(client, "billing-create", payload).json()

    assert body["data"]["amount"] == "1000000.00"
    assert "market_amount" not in body["data"]
    assert "is_black" not in body["data"]

    summary = client.get(reverse("estate_core:ledger-summary")).json()
    assert "black" not in summary["data"]


@pytest.mark.django_db
def test_black_fields_shown_with_permission(client, clerk, estate_client):
    clerk.user_permissions.add(Permission.objects.get(codename="view_black_ledger"))
    payload = {"client_id": estate_client.pk, "amount": "1000000.00", "market_amount": "1600000.00"}

    body = post_json(client, "billing-create", payload).json()

    assert body["data"]["market_amount"] == "1600000.00"
    summary = client.get(reverse("estate_core:ledger-summary")).json()
    assert summary["data"]["black"]["billed"] == "1600000.00"


@pytest.mark.django_db
def test_constraint_violation_maps_to_conflict(client, clerk, estate_client):
    layout = services.create_layout({"name": "Green Meadows", "location": "Outer Ring Road"})
    plot = services.create_plot({"layout_id": layout.pk, "plot_number": "P-01", "area": "1200.00"})
    services.create_billing({"client_id": estate_client.pk, "plot_id": plot.pk, "amount": "1000.00"})

    response = post_json(client, "plot-delete", {}, pk=plot.pk)

    assert response.status_code == 409
    body = response.json()
    assert body["ok"] is False
    assert body["error"]["code"] == "constraint_violation"
    assert "P-01" in body["error"]["message"]


@pytest.mark.django_db
def test_plot_for_missing_layout_is_not_found(client, clerk):
    response = post_json(client, "plot-create", {"layout_id": 999, "plot_number": "P-01", "area": "1.00"})

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "not_found"


@pytest.mark.django_db
def test_json_numbers_pay_as_exact_decimals(client, clerk, estate_client):
    billing = services.create_billing({"client_id": estate_client.pk, "amount": "1000.00"})

    # 400.10 arrives as a JSON number, not a string
    response = client.post(
        reverse("estate_core:billing-payment", kwargs={"pk": billing.pk}),
        data='{"amount": 400.10, "mode": "upi"}',
        content_type="application/json",
    )

    assert response.status_code == 200
    body = response.json()
    assert body["billing_status"] == "partial"
    assert body["balance"] == "599.90"

    detail = client.get(reverse("estate_core:billing-detail", kwargs={"pk": billing.pk})).json()
    assert detail["paid_total"] == "400.10"
    assert len(detail["payments"]) == 1


@pytest.mark.django_db
def test_malformed_json_is_a_validation_error(client, clerk):
    response = client.post(
        reverse("estate_core:layout-create"), data="{not json", content_type="application/json"
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "validation_error"
