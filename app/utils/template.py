from datetime import datetime
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


def format_date(value: datetime, fmt: str = "%d %b %Y") -> str:
    return value.strftime(fmt) if value else ""


env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
    undefined=StrictUndefined,
)
env.filters["date"] = format_date


def render_template(template_path: str, **context) -> str:
    """Render an email template; a missing variable raises instead of rendering blank."""
    return env.get_template(template_path).render(**context)
