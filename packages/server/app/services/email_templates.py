"""
Reminder email rendering (Jinja2 templates under app/templates/email).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.core.config import get_settings
from app.models.base import ensure_utc

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

WEEKDAYS_FR = ["lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche"]
MONTHS_FR = [
    "janvier", "février", "mars", "avril", "mai", "juin",
    "juillet", "août", "septembre", "octobre", "novembre", "décembre",
]

TASK_ACCENT = ("#10b981", "linear-gradient(135deg, #10b981 0%, #059669 100%)")
EVENT_ACCENT = ("#ef4444", "linear-gradient(135deg, #ef4444 0%, #dc2626 100%)")


def _local(value: datetime) -> datetime:
    return ensure_utc(value).astimezone(ZoneInfo(get_settings().display_timezone))


def format_date_fr(value: datetime) -> str:
    """`mercredi 24 décembre 2025`"""
    local = _local(value)
    return f"{WEEKDAYS_FR[local.weekday()]} {local.day} {MONTHS_FR[local.month - 1]} {local.year}"


def format_time_fr(value: datetime) -> str:
    return _local(value).strftime("%H:%M")


_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters["date_fr"] = format_date_fr
_env.filters["time_fr"] = format_time_fr


@dataclass
class RenderedEmail:
    subject: str
    text: str
    html: str


@dataclass
class TaskReminder:
    task_title: str
    due_date: datetime
    event_name: str
    user_name: str
    task_description: Optional[str] = None
    event_location: Optional[str] = None


@dataclass
class EventReminder:
    event_name: str
    date: datetime
    user_name: str
    event_description: Optional[str] = None
    end_date: Optional[datetime] = None
    location: Optional[str] = None


def _render(name: str, accent: tuple[str, str], context: dict) -> tuple[str, str]:
    context = {
        **context,
        "app_url": get_settings().app_url,
        "accent": accent[0],
        "accent_gradient": accent[1],
    }
    text = _env.get_template(f"{name}.txt").render(**context).strip()
    html = _env.get_template(f"{name}.html").render(**context).strip()
    return text, html


def render_task_reminder(data: TaskReminder) -> RenderedEmail:
    text, html = _render("task_reminder", TASK_ACCENT, asdict(data))
    return RenderedEmail(subject=f"🎄 Rappel : {data.task_title}", text=text, html=html)


def render_event_reminder(data: EventReminder) -> RenderedEmail:
    text, html = _render("event_reminder", EVENT_ACCENT, asdict(data))
    return RenderedEmail(subject=f"🎄 Rappel : {data.event_name}", text=text, html=html)
