"""Utility functions for the AI News Agent."""

from datetime import datetime

from slugify import slugify as python_slugify

ELLIPSIS = "..."


def slugify(text: str, max_length: int = 100) -> str:
    """Convert text to a URL-friendly slug.

    Args:
        text: The text to convert to a slug.
        max_length: Maximum length of the slug (default: 100).

    Returns:
        A URL-friendly slug version of the text.
    """
    return python_slugify(text, max_length=max_length)


def truncate(text: str, max_length: int) -> str:
    """Cut text to at most max_length characters, ending with an ellipsis when cut.

    Args:
        text: The text to shorten.
        max_length: Maximum length of the result, ellipsis included.

    Returns:
        The original text if it fits, otherwise a prefix followed by "...".
    """
    if len(text) <= max_length:
        return text
    if max_length <= len(ELLIPSIS):
        return text[:max_length]
    return text[: max_length - len(ELLIPSIS)] + ELLIPSIS


def get_date_string() -> str:
    """Get the current date in YYYY-MM-DD format."""
    return datetime.now().strftime("%Y-%m-%d")


def generate_filename(title: str, extension: str = ".txt", suffix: str = "") -> str:
    """Generate a filename for a saved post.

    Args:
        title: Title of the article the post is about.
        extension: File extension including the dot.
        suffix: Text appended to the slug, e.g. to tell apart posts about
            the same article.

    Returns:
        A filename in the format 'YYYY-MM-DD-slug<suffix>.txt'.
    """
    slug = slugify(title) or "post"
    return f"{get_date_string()}-{slug}{suffix}{extension}"
