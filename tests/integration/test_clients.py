"""Integration tests for external service clients against mock transports"""

import json
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, patch

import aiosmtplib
import httpx
import pytest

from dispute_reporter.domain.exceptions import DeliveryError, FetchError
from dispute_reporter.domain.models import OutcomeStatus, ReportWindow
from dispute_reporter.infrastructure.clients.asana import AsanaClient
from dispute_reporter.infrastructure.clients.mail import MailClient
from dispute_reporter.infrastructure.clients.stripe import StripeClient, account_label, parse_dispute
from dispute_reporter.pipeline import ReportPipeline

WINDOW = ReportWindow(
    start=datetime(2025, 6, 23, tzinfo=timezone.utc),
    end=datetime(2025, 6, 29, 23, 59, 59, 999000, tzinfo=timezone.utc),
)


def _stripe_dispute(dispute_id: str, charge=None) -> dict:
    return {
        "id": dispute_id,
        "object": "dispute",
        "amount": 4999,
        "currency": "EUR",
        "reason": "fraudulent",
        "status": "needs_response",
        "created": 1750939200,
        "charge": charge
        if charge is not None
        else {
            "id": f"ch_{dispute_id}",
            "created": 1750852800,
            "billing_details": {"email": None},
            "receipt_email": "receipt@example.com",
            "customer": {"id": "cus_9", "object": "customer"},
            "payment_method_details": {
                "type": "card",
                "card": {"brand": "jcb", "funding": "prepaid", "country": "JP"},
            },
        },
    }


def test_parse_dispute_expanded_charge():
    dispute = parse_dispute(_stripe_dispute("dp_1"))

    assert dispute.currency == "eur"
    assert dispute.created_at == datetime(2025, 6, 26, 12, 0, tzinfo=timezone.utc)
    assert dispute.charge.id == "ch_dp_1"
    assert dispute.charge.billing_email == "receipt@example.com"
    assert dispute.charge.customer_ref == "cus_9"
    assert dispute.charge.payment_method.brand == "jcb"
    assert dispute.charge.payment_method.funding == "prepaid"
    assert dispute.charge.payment_method.country == "JP"
    assert dispute.charge.payment_method.type == "card"


def test_parse_dispute_unexpanded_charge_has_no_charge_record():
    dispute = parse_dispute(_stripe_dispute("dp_2", charge="ch_123"))
    assert dispute.charge is None


def test_account_label_fallbacks():
    assert account_label({"settings": {"dashboard": {"display_name": "Acme"}}}) == "Acme"
    assert account_label({"business_profile": {"name": "Acme LLC"}}) == "Acme LLC"
    assert account_label({"email": "ops@acme.test"}) == "ops@acme.test"
    assert account_label({}) == "Unknown Account"


async def test_list_disputes_follows_pagination():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if "starting_after" not in request.url.params:
            return httpx.Response(200, json={"data": [_stripe_dispute("dp_1")], "has_more": True})
        return httpx.Response(200, json={"data": [_stripe_dispute("dp_2")], "has_more": False})

    client = StripeClient(secret_key="sk_test", base_url="https://stripe.test/v1", transport=httpx.MockTransport(handler))

    disputes = await client.list_disputes(WINDOW)

    assert [d.id for d in disputes] == ["dp_1", "dp_2"]
    assert len(requests) == 2

    first = requests[0]
    assert first.headers["Authorization"] == "Bearer sk_test"
    assert first.url.path == "/v1/disputes"
    assert first.url.params["created[gte]"] == str(int(WINDOW.start.timestamp()))
    assert first.url.params["created[lte]"] == str(int(WINDOW.end.timestamp()))
    assert first.url.params.get_list("expand[]") == ["data.charge", "data.charge.customer"]
    assert first.url.params["limit"] == "100"
    assert requests[1].url.params["starting_after"] == "dp_1"


async def test_list_disputes_http_error_raises_fetch_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(401, json={"error": {}}))
    client = StripeClient(secret_key="sk_bad", base_url="https://stripe.test/v1", transport=transport)

    with pytest.raises(FetchError, match="401"):
        await client.list_disputes(WINDOW)


async def test_list_disputes_malformed_payload_raises_fetch_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"data": [{"id": "dp_x"}]}))
    client = StripeClient(secret_key="sk_test", base_url="https://stripe.test/v1", transport=transport)

    with pytest.raises(FetchError, match="Invalid dispute data"):
        await client.list_disputes(WINDOW)


async def test_list_disputes_network_error_raises_fetch_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = StripeClient(secret_key="sk_test", base_url="https://stripe.test/v1", transport=httpx.MockTransport(handler))

    with pytest.raises(FetchError, match="unreachable"):
        await client.list_disputes(WINDOW)


async def test_get_account_label():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, json={"id": "acct_1", "business_profile": {"name": "Acme Inc"}})
    )
    client = StripeClient(secret_key="sk_test", base_url="https://stripe.test/v1", transport=transport)

    assert await client.get_account_label() == "Acme Inc"


async def test_create_task_posts_project_and_assignee():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        return httpx.Response(201, json={"data": {"gid": "1209"}})

    client = AsanaClient(
        access_token="tok",
        project_id="proj_1",
        assignee_id="user_7",
        base_url="https://asana.test/api/1.0",
        transport=httpx.MockTransport(handler),
    )

    task_id = await client.create_task("Title", "Notes", date(2025, 7, 2))

    assert task_id == "1209"
    assert captured["path"] == "/api/1.0/tasks"
    assert captured["body"] == {
        "data": {
            "name": "Title",
            "notes": "Notes",
            "projects": ["proj_1"],
            "due_on": "2025-07-02",
            "assignee": "user_7",
        }
    }


async def test_create_task_failure_raises_delivery_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(403, json={"errors": []}))
    client = AsanaClient(access_token="tok", project_id="p", base_url="https://asana.test/api/1.0", transport=transport)

    with pytest.raises(DeliveryError, match="403"):
        await client.create_task("Title", "Notes", date(2025, 7, 2))


async def test_attach_file_uploads_multipart(tmp_path):
    report = tmp_path / "report.csv"
    report.write_text("id\ndp_1\n", encoding="utf-8")
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["content_type"] = request.headers["Content-Type"]
        captured["body"] = request.read()
        return httpx.Response(200, json={"data": {"gid": "att_1"}})

    client = AsanaClient(access_token="tok", project_id="p", base_url="https://asana.test/api/1.0", transport=httpx.MockTransport(handler))

    await client.attach_file("1209", report)

    assert captured["path"] == "/api/1.0/attachments"
    assert captured["content_type"].startswith("multipart/form-data")
    assert b'name="parent"' in captured["body"]
    assert b"1209" in captured["body"]
    assert b'filename="report.csv"' in captured["body"]


async def test_attach_missing_file_raises_delivery_error(tmp_path):
    client = AsanaClient(access_token="tok", project_id="p", base_url="https://asana.test/api/1.0")

    with pytest.raises(DeliveryError):
        await client.attach_file("1209", tmp_path / "gone.csv")


@patch("dispute_reporter.infrastructure.clients.mail.aiosmtplib.send", new_callable=AsyncMock)
async def test_send_report_builds_message(mock_send: AsyncMock, tmp_path):
    report = tmp_path / "2025-06-23 - 2025-06-29 Acme disputes.csv"
    report.write_text("id\ndp_1\n", encoding="utf-8")
    client = MailClient(
        host="smtp.test",
        port=587,
        use_tls=False,
        username="user",
        password="pass",
        sender="reports@acme.test",
        recipient="ops@acme.test",
        reply_to="support@acme.test",
    )

    await client.send_report("Subject", "Body text", report)

    message = mock_send.call_args.args[0]
    assert message["From"] == "reports@acme.test"
    assert message["To"] == "ops@acme.test"
    assert message["Reply-To"] == "support@acme.test"
    assert message["Subject"] == "Subject"
    attachments = list(message.iter_attachments())
    assert len(attachments) == 1
    assert attachments[0].get_filename() == report.name
    assert mock_send.call_args.kwargs["hostname"] == "smtp.test"
    assert mock_send.call_args.kwargs["port"] == 587


@patch("dispute_reporter.infrastructure.clients.mail.aiosmtplib.send", new_callable=AsyncMock)
async def test_send_report_smtp_failure_raises_delivery_error(mock_send: AsyncMock, tmp_path):
    report = tmp_path / "report.csv"
    report.write_text("id\n", encoding="utf-8")
    mock_send.side_effect = aiosmtplib.SMTPException("auth failed")
    client = MailClient(host="smtp.test", sender="a@test", recipient="b@test")

    with pytest.raises(DeliveryError, match="SMTP delivery failed"):
        await client.send_report("Subject", "Body", report)


async def test_list_disputes_non_object_body_raises_fetch_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=["bad"]))
    client = StripeClient(secret_key="sk_test", base_url="https://stripe.test/v1", transport=transport)

    with pytest.raises(FetchError, match="Invalid dispute data"):
        await client.list_disputes(WINDOW)


async def test_list_disputes_odd_charge_shape_raises_fetch_error():
    dispute = _stripe_dispute("dp_odd")
    dispute["charge"]["billing_details"] = "not-an-object"
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"data": [dispute], "has_more": False}))
    client = StripeClient(secret_key="sk_test", base_url="https://stripe.test/v1", transport=transport)

    with pytest.raises(FetchError, match="Invalid dispute data"):
        await client.list_disputes(WINDOW)


async def test_get_account_label_non_object_body_raises_fetch_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=["unexpected"]))
    client = StripeClient(secret_key="sk_test", base_url="https://stripe.test/v1", transport=transport)

    with pytest.raises(FetchError, match="Invalid account data"):
        await client.get_account_label()


async def test_pipeline_run_survives_malformed_stripe_responses(tasks, mail, now):
    """Odd account payload falls back to Unknown Account; odd dispute payload fails the run"""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/account"):
            return httpx.Response(200, json=["unexpected"])
        return httpx.Response(200, json={"data": [_stripe_dispute("dp_1")], "has_more": False})

    billing = StripeClient(secret_key="sk_test", base_url="https://stripe.test/v1", transport=httpx.MockTransport(handler))
    pipeline = ReportPipeline(billing=billing, tasks=tasks, mail=mail, report_tz=timezone.utc)

    outcome = await pipeline.run(now)

    assert outcome.status == OutcomeStatus.DELIVERED
    assert outcome.file_name.endswith("Unknown Account disputes.csv")

    bad_billing = StripeClient(
        secret_key="sk_test",
        base_url="https://stripe.test/v1",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=["bad"])),
    )
    bad_pipeline = ReportPipeline(billing=bad_billing, tasks=tasks, mail=mail, report_tz=timezone.utc)

    outcome = await bad_pipeline.run(now)

    assert outcome.status == OutcomeStatus.FAILED
    assert "Invalid dispute data" in outcome.error
