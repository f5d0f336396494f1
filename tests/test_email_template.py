# tests/test_email_template.py
from datetime import datetime

import pytest

from mortgage_moment.services.email_summary import (
    EmailSummaryRequest,
    EmailValidationError,
    format_eur,
    render_summary_email,
    send_summary,
)

from fakes import FakeSender


def _req(**overrides):
    base = {
        "userName": "Anna",
        "userEmail": "anna@example.com",
        "propertyTitle": "Bright 2-room flat",
        "propertyAddress": "Leopoldstr. 1, 80802 München",
        "propertyPrice": 320000,
    }
    base.update(overrides)
    return EmailSummaryRequest.model_validate(base)


@pytest.mark.parametrize(
    "value, expected",
    [(450000, "€450,000"), ("450000", "€450,000"), (1234.6, "€1,235"), ("2,500,000", "€2,500,000"), (None, "€0")],
)
def test_format_eur(value, expected):
    assert format_eur(value) == expected


def test_inquiry_email():
    subject, body = render_summary_email(_req(), now=datetime(2025, 3, 1))

    assert subject == "Inquiry Confirmation: Bright 2-room flat"
    assert "Hello Anna," in body
    assert "We have received your inquiry" in body
    assert "€320,000" in body
    assert "&copy; 2025 Mortgage Moment" in body
    assert "<img" not in body


def test_call_summary_email_with_image():
    subject, body = render_summary_email(_req(isVoiceCall=True, propertyImage="https://img.example/a1.jpg"))

    assert subject == "Your call summary: Bright 2-room flat"
    assert "Thanks for talking to Momo" in body
    assert 'src="https://img.example/a1.jpg"' in body


def test_user_values_are_escaped():
    _, body = render_summary_email(_req(userName="<script>alert(1)</script>"))
    assert "<script>" not in body
    assert "&lt;script&gt;" in body


def test_optional_blocks():
    _, body = render_summary_email(
        _req(
            affordabilityData={"isAffordable": False, "maxAffordablePrice": 355454.5, "gap": 94545.5},
            userProfile={"income": 4000, "equity": 50000},
            coachData={
                "incomeGapPlan": {"requiredIncome": 5762, "incomeGap": 1762},
                "savingsPlan": {"monthlySavingsRequired": 348.24, "years": 18, "projectedValue": 150000},
                "alternativeLocations": [{"name": "Landshut"}, {"name": "Augsburg"}],
            },
        )
    )

    assert "€94,546" in body and "above your" in body
    assert "Monthly net income: €4,000" in body
    assert "Plan A" in body and "€5,762" in body
    assert "Plan B" in body and "18 years" in body
    assert "Landshut, Augsburg" in body


def test_blocks_are_left_out_without_data():
    _, body = render_summary_email(_req())
    assert "Your affordability check" not in body
    assert "Your affordability coach" not in body


def test_send_summary_requires_email():
    with pytest.raises(EmailValidationError):
        send_summary(_req(userEmail=""), FakeSender())


def test_send_summary_defaults_name():
    sender = FakeSender()
    send_summary(_req(userName=None, userEmail=" anna@example.com "), sender)

    assert sender.sent[0]["to_email"] == "anna@example.com"
    assert sender.sent[0]["to_name"] == "User"


def test_property_fields_are_escaped():
    _, body = render_summary_email(
        _req(
            propertyTitle='Loft "<b>deal</b>"',
            propertyImage='https://img.example/a.jpg" onerror="x',
            coachData={"alternativeLocations": [{"name": "<i>Dachau</i>"}]},
        )
    )

    assert "<b>deal</b>" not in body
    assert "&lt;b&gt;deal&lt;/b&gt;" in body
    assert 'onerror="x' not in body
    assert "&lt;i&gt;Dachau&lt;/i&gt;" in body


def test_null_voice_flag_means_inquiry():
    req = _req(isVoiceCall=None)
    subject, body = render_summary_email(req)

    assert req.is_voice_call is None
    assert subject == "Inquiry Confirmation: Bright 2-room flat"
    assert "We have received your inquiry" in body
