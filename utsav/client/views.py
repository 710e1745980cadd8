"""
View models for the festival screens.

Each function turns rows into the plain values a screen renders:
labels in the current language, amounts in Indian digit grouping.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

import structlog

from utsav.client.preferences import Preferences

logger = structlog.get_logger(__name__)

T = TypeVar("T")

CATEGORY_LABELS = {
    "chanda": "చందా / Chanda",
    "sponsorship": "స్పాన్సర్‌షిప్ / Sponsorship",
}

ERROR_TITLE = "Something went wrong"
ERROR_MESSAGE = "Something went wrong. Please reload the page."


def format_inr(amount: float | int | None) -> str:
    """
    Format an amount the way en-IN does: last three digits, then pairs.

    >>> format_inr(1234567.5)
    '₹12,34,567.5'
    """
    value = float(amount or 0)
    sign = "-" if value < 0 else ""
    whole, _, fraction = f"{abs(value):.2f}".partition(".")
    fraction = fraction.rstrip("0")

    head, tail = whole[:-3], whole[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    grouped = ",".join(groups + [tail])

    return f"{sign}₹{grouped}" + (f".{fraction}" if fraction else "")


# ---------------------------------------------------------------------------
# Donations
# ---------------------------------------------------------------------------

def donation_card(donation: dict[str, Any]) -> dict[str, Any]:
    """Display values for one donation, including its payment status."""
    amount = float(donation.get("amount") or 0)
    received = float(donation.get("received_amount") or 0)
    is_received = received >= amount
    return {
        "id": donation.get("id"),
        "name": donation.get("name"),
        "name_telugu": donation.get("name_telugu"),
        "amount": format_inr(amount),
        "type": donation.get("type"),
        "category": CATEGORY_LABELS.get(donation.get("category", ""), donation.get("category")),
        "status": "Received" if is_received else "Pending",
        "received": format_inr(received),
        "pending": None if is_received else format_inr(amount - received),
    }


def chandas_preview(donations: list[dict[str, Any]], prefs: Preferences) -> dict[str, Any]:
    """Total and count of chanda donations plus the three most recent."""
    chandas = [d for d in donations if d.get("category", "chanda") == "chanda"]
    total = sum(float(d.get("amount") or 0) for d in chandas)
    return {
        "title": prefs.t("చందాలు", "Chandas"),
        "total": format_inr(total),
        "total_label": prefs.t("మొత్తం చందా", "Total Amount"),
        "count": len(chandas),
        "recent": [donation_card(d) for d in chandas[:3]],
    }


def expenses_preview(expenses: list[dict[str, Any]], prefs: Preferences) -> dict[str, Any]:
    total = sum(float(e.get("amount") or 0) for e in expenses)
    return {
        "title": prefs.t("ఖర్చులు", "Expenses"),
        "total": format_inr(total),
        "total_label": prefs.t("మొత్తం ఖర్చు", "Total Expenses"),
        "count": len(expenses),
        "recent": [
            {"type": e.get("type"), "amount": format_inr(e.get("amount")), "description": e.get("description")}
            for e in expenses[:3]
        ],
    }


def dashboard_summary(
    donation_total: float,
    expense_total: float,
    previous_amount: float = 0.0,
) -> dict[str, str]:
    """Collected, spent and what is left, including the carried-over balance."""
    balance = previous_amount + donation_total - expense_total
    return {
        "previous_amount": format_inr(previous_amount),
        "donations": format_inr(donation_total),
        "expenses": format_inr(expense_total),
        "balance": format_inr(balance),
    }


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NavItem:
    path: str
    page: str | None
    telugu: str
    english: str
    requires_auth: bool = False
    requires_festival: bool = False


def nav_items(slug: str | None = None) -> list[NavItem]:
    prefix = f"/org/{slug}" if slug else ""
    return [
        NavItem(f"{prefix}/dashboard", "dashboard", "డాష్‌బోర్డ్", "Home"),
        NavItem(f"{prefix}/chandas", "chandas", "చందాలు", "Chandas"),
        NavItem(f"{prefix}/expenses", "expenses", "ఖర్చులు", "Expenses"),
        NavItem(f"{prefix}/images", "images", "చిత్రాలు", "Gallery"),
        NavItem(f"{prefix}/voting", "voting", "ఓటింగ్", "Voting"),
        NavItem(f"{prefix}/settings", None, "సెట్టింగ్‌లు", "Settings", requires_auth=True),
    ]


def visible_nav_items(
    items: Iterable[NavItem],
    is_authenticated: bool,
    selected_festival: dict[str, Any] | None,
    allowed_pages: list[str] | None,
) -> list[NavItem]:
    """
    Filter navigation entries.

    A shared link's page list only restricts a locked installation; the
    selected festival's enabled pages restrict everyone.
    """
    festival_pages = selected_festival.get("enabled_pages") if selected_festival else None
    visible = []
    for item in items:
        if item.requires_auth and not is_authenticated:
            continue
        if item.requires_festival and not selected_festival:
            continue
        if item.page is not None:
            if not is_authenticated and allowed_pages is not None and item.page not in allowed_pages:
                continue
            if festival_pages is not None and item.page not in festival_pages:
                continue
        visible.append(item)
    return visible


# ---------------------------------------------------------------------------
# Activity feed
# ---------------------------------------------------------------------------

def activity_feed(logs: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Human readable lines for audit entries."""
    lines = []
    for log in logs:
        new = log.get("new_data") or {}
        old = log.get("old_data") or {}
        record = new.get("name") or old.get("name") or str(log.get("record_id", ""))[:8]
        entry = {
            "headline": f"{log['action']} on {log['table_name']}",
            "at": log.get("created_at"),
            "record": record,
            "amount": format_inr(new.get("amount") or old.get("amount") or 0),
            "diff": None,
        }
        if log["action"] == "UPDATE":
            entry["diff"] = {"old": format_inr(old.get("amount")), "new": format_inr(new.get("amount"))}
        lines.append(entry)
    return lines


# ---------------------------------------------------------------------------
# Error boundary
# ---------------------------------------------------------------------------

class ErrorBoundary:
    """
    Catches a failing render and swaps in a static error view.

    Once tripped it stays tripped; the only way out is a reload.
    """

    def __init__(self) -> None:
        self.has_error = False
        self.error: Exception | None = None

    def render(self, view: Callable[[], T]) -> T | dict[str, Any]:
        if self.has_error:
            return self.fallback()
        try:
            return view()
        except Exception as exc:
            logger.exception("render_failed")
            self.has_error = True
            self.error = exc
            return self.fallback()

    def fallback(self) -> dict[str, Any]:
        return {"title": ERROR_TITLE, "message": ERROR_MESSAGE, "action": "reload"}
