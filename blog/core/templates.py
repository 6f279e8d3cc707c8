"""Shared template configuration for web routes"""

from pathlib import Path
from typing import Optional

from fastapi.templating import Jinja2Templates

from blog.db.models import Post

# Get blog package directory
BLOG_DIR = Path(__file__).parent.parent

TEMPLATES_DIR = BLOG_DIR / "templates"


def preview(post: Post) -> str:
    """Tag-free body excerpt for post listings."""
    return post.preview()


def format_timestamp(value) -> str:
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d %H:%M")


def create_templates(directory: Optional[Path] = None) -> Jinja2Templates:
    """Build the templates instance stored on ``app.state.templates``."""
    templates = Jinja2Templates(directory=str(directory or TEMPLATES_DIR))

    # Register filters
    templates.env.filters["preview"] = preview
    templates.env.filters["timestamp"] = format_timestamp

    # Parse every page now so a broken template fails startup
    for name in templates.env.list_templates(extensions=["html"]):
        templates.env.get_template(name)
    return templates


__all__ = ["create_templates", "TEMPLATES_DIR"]
