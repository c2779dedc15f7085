# bizdir/core/domain/slugs.py
def normalize_slug(slug: str) -> str:
    """Slugs compare case-insensitively and without surrounding whitespace."""
    return slug.strip().lower()


def slug_to_display_name(slug: str) -> str:
    """
    Title-cases the hyphen-separated words of a slug.

    >>> slug_to_display_name("abu-dhabi")
    'Abu Dhabi'
    """
    words = [word for word in slug.split("-") if word]
    return " ".join(word[:1].upper() + word[1:] for word in words)
