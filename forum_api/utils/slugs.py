# first path segments owned by fixed routes; a category slug here would be shadowed
RESERVED_SLUGS = {"auth", "categories", "replies", "threads"}
# same for thread slugs under a category
RESERVED_THREAD_SLUGS = {"threads"}


def next_free_slug(base: str, taken: set) -> str:
    """``base``, or ``base-2``, ``base-3``... whichever is not in ``taken``."""
    if base not in taken:
        return base
    n = 2
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"
