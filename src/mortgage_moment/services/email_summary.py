# src/mortgage_moment/services/email_summary.py
from __future__ import annotations

from datetime import datetime
from typing import Any

from jinja2 import DictLoader, Environment

from mortgage_moment.domain.listing import CamelModel
from mortgage_moment.domain.ports import EmailSender
from mortgage_moment.domain.profile import to_number


class EmailValidationError(ValueError):
    pass


class EmailSummaryRequest(CamelModel):
    """
    Body of POST /api/send-email. Everything is optional at the schema level
    so a missing email surfaces as our own 400, not a framework 422.
    """
    user_name: str | None = None
    user_email: str | None = None
    property_title: str | None = None
    property_address: str | None = None
    property_price: Any = None
    property_image: str | None = None
    coach_data: dict[str, Any] | None = None
    # null is sent by clients that never set the flag; treated as an inquiry
    is_voice_call: bool | None = None
    user_profile: dict[str, Any] | None = None
    affordability_data: dict[str, Any] | None = None


_SUMMARY_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{ subject }}</title>
    <style>
        body { font-family: 'Helvetica Neue', Helvetica, Arial, sans-serif; line-height: 1.6; color: #333; margin: 0; padding: 0; background-color: #f4f4f4; }
        .container { max-width: 600px; margin: 0 auto; background-color: #ffffff; border-radius: 8px; overflow: hidden; }
        .header { background-color: #2c3e50; color: #ffffff; padding: 20px; text-align: center; }
        .content { padding: 30px; }
        .card { background-color: #f9f9f9; border: 1px solid #e0e0e0; border-radius: 6px; padding: 20px; margin-top: 20px; }
        .property-image { width: 100%; height: 200px; object-fit: cover; border-radius: 4px; margin-bottom: 15px; }
        .price { color: #27ae60; font-size: 20px; font-weight: bold; margin: 10px 0; }
        .over { color: #e74c3c; }
        .footer { background-color: #f4f4f4; padding: 20px; text-align: center; font-size: 12px; color: #777; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>Mortgage Moment</h1>
        </div>
        <div class="content">
            <p>Hello{% if name %} {{ name }}{% endif %},</p>
            {% if is_voice_call %}
            <p>Thanks for talking to Momo! As promised, here is the summary of the property we discussed:</p>
            {% else %}
            <p>Thank you for your interest! We have received your inquiry regarding the following property:</p>
            {% endif %}
            <div class="card">
                {% if image %}<img src="{{ image }}" alt="{{ card_title }}" class="property-image" />{% endif %}
                <h2 style="margin-top: 0;">{{ card_title }}</h2>
                <p style="margin-bottom: 5px;">{{ address }}</p>
                <div class="price">{{ price }}</div>
            </div>
            {% if check %}
            <div class="card">
                <h3 style="margin-top: 0;">Your affordability check</h3>
                {% if check.affordable %}
                <p>Good news: this property fits your estimated budget of <strong>{{ check.budget }}</strong>.</p>
                {% else %}
                <p class="over">This property is <strong>{{ check.gap }}</strong> above your estimated budget of <strong>{{ check.budget }}</strong>.</p>
                {% endif %}
            </div>
            {% endif %}
            {% if profile_rows %}
            <div class="card">
                <h3 style="margin-top: 0;">The numbers you gave us</h3>
                <ul>{% for label, value in profile_rows %}<li>{{ label }}: {{ value }}</li>{% endfor %}</ul>
            </div>
            {% endif %}
            {% if coach %}
            <div class="card">
                <h3 style="margin-top: 0;">Your affordability coach</h3>
                {% if coach.income %}
                <p><strong>Plan A:</strong> a net monthly income of about {{ coach.income.required }} (+{{ coach.income.gap }} per month).</p>
                {% endif %}
                {% if coach.savings %}
                <p><strong>Plan B:</strong> invest {{ coach.savings.monthly }} per month for {{ coach.savings.years }} years to build {{ coach.savings.projected }}.</p>
                {% endif %}
                {% if coach.locations %}
                <p><strong>Plan C:</strong> look at {{ coach.locations|join(", ") }}.</p>
                {% endif %}
            </div>
            {% endif %}
            <p>One of our mortgage experts will review your request and get back to you shortly at <strong>{{ email }}</strong>.</p>
            <p>Best regards,<br>The Mortgage Moment Team</p>
        </div>
        <div class="footer">
            <p>&copy; {{ year }} Mortgage Moment. All rights reserved.</p>
            <p>This is an automated message. Please do not reply directly to this email.</p>
        </div>
    </div>
</body>
</html>
"""

_env = Environment(
    loader=DictLoader({"summary_email.html": _SUMMARY_TEMPLATE}),
    autoescape=True,
)


def format_eur(v: Any) -> str:
    """450000 -> '€450,000'. Pre-formatted strings ("2,500,000") pass through."""
    if isinstance(v, str) and not v.strip().replace(",", "").replace(".", "").isdigit():
        return f"€{v.strip()}" if v.strip() else ""
    amount = to_number(v)
    return f"€{amount:,.0f}"


def _affordability_view(data: dict[str, Any] | None) -> dict[str, Any] | None:
    if not data:
        return None
    return {
        "affordable": bool(data.get("isAffordable")),
        "budget": format_eur(data.get("maxAffordablePrice")),
        "gap": format_eur(data.get("gap")),
    }


def _profile_rows(profile: dict[str, Any] | None) -> list[tuple[str, str]]:
    if not profile:
        return []
    rows = []
    for label, keys in (
        ("Monthly net income", ("monthlyIncome", "income")),
        ("Monthly debts", ("monthlyDebts", "debts")),
        ("Equity", ("equity",)),
    ):
        val = next((profile[k] for k in keys if profile.get(k) not in (None, "")), None)
        if val is not None:
            rows.append((label, format_eur(val)))
    return rows


def _coach_view(coach: dict[str, Any] | None) -> dict[str, Any] | None:
    if not coach:
        return None
    income_plan = coach.get("incomeGapPlan") or {}
    savings = coach.get("savingsPlan") or {}
    view: dict[str, Any] = {}

    if income_plan.get("requiredIncome"):
        view["income"] = {
            "required": format_eur(income_plan.get("requiredIncome")),
            "gap": format_eur(income_plan.get("incomeGap")),
        }
    if savings.get("monthlySavingsRequired"):
        view["savings"] = {
            "monthly": format_eur(savings.get("monthlySavingsRequired")),
            "years": savings.get("years"),
            "projected": format_eur(savings.get("projectedValue")),
        }
    names = [
        str(loc["name"])
        for loc in coach.get("alternativeLocations") or []
        if isinstance(loc, dict) and loc.get("name")
    ]
    if names:
        view["locations"] = names

    return view or None


def render_summary_email(req: EmailSummaryRequest, now: datetime | None = None) -> tuple[str, str]:
    """Returns (subject, html)."""
    title = req.property_title or "your property"
    is_voice_call = bool(req.is_voice_call)
    if is_voice_call:
        subject = f"Your call summary: {title}"
    else:
        subject = f"Inquiry Confirmation: {title}"

    body = _env.get_template("summary_email.html").render(
        subject=subject,
        name=req.user_name or "",
        email=req.user_email or "",
        is_voice_call=is_voice_call,
        card_title=req.property_title or "Your selected property",
        image=req.property_image,
        address=req.property_address or "",
        price=format_eur(req.property_price),
        check=_affordability_view(req.affordability_data),
        profile_rows=_profile_rows(req.user_profile),
        coach=_coach_view(req.coach_data),
        year=(now or datetime.now()).year,
    )
    return subject, body


def require_email(req: EmailSummaryRequest) -> str:
    if not req.user_email or not req.user_email.strip():
        raise EmailValidationError("User email is required")
    return req.user_email.strip()


def send_summary(req: EmailSummaryRequest, sender: EmailSender) -> dict[str, Any]:
    to_email = require_email(req)
    subject, body = render_summary_email(req)
    return sender.send(
        to_email=to_email,
        to_name=req.user_name or "User",
        subject=subject,
        html=body,
    )
