"""
Slug generation for events and participants.

A slug is a dasherized, lowercase prefix taken from a human label plus a
random suffix, e.g. ``weekend-trip-Xk3_a9Q``. Uniqueness is checked against
the model's slug namespace before use and enforced again by the unique
constraint on insert.
"""

import logging
import re
import secrets
import string

from django.conf import settings
from django.db import IntegrityError, transaction

from .exceptions import PersistenceError

logger = logging.getLogger(__name__)

SLUG_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits + '_'

_SPECIAL_CHARS = re.compile(r'[^a-z0-9\-\s]', re.IGNORECASE)
_WHITESPACE = re.compile(r'\s+')


def _slug_max_length():
    return getattr(settings, 'SLUG_MAX_LENGTH', 32)


def _slug_suffix_length():
    return getattr(settings, 'SLUG_SUFFIX_LENGTH', 7)


def random_string(length: int = 7, *, case_sensitive: bool = True) -> str:
    """Random string drawn from ``A-Z a-z 0-9 _``."""
    result = ''.join(secrets.choice(SLUG_ALPHABET) for _ in range(length))
    return result if case_sensitive else result.lower()


def to_slug(label: str, *, max_length: int = None, suffix_length: int = None) -> str:
    """
    Build a slug candidate from a label.

    The prefix is cut so that ``prefix + '-' + suffix`` never exceeds
    ``max_length``. A label without usable characters yields the bare suffix.

    Example:
        >>> to_slug('Weekend Trip!')
        'weekend-trip-Xk3_a9Q'
    """
    if max_length is None:
        max_length = _slug_max_length()
    if suffix_length is None:
        suffix_length = _slug_suffix_length()

    prefix_length = max(max_length - suffix_length - 1, 0)
    cleaned = _SPECIAL_CHARS.sub('', (label or '').strip())
    cleaned = _WHITESPACE.sub(' ', cleaned)[:prefix_length].strip().lower()
    prefix = _WHITESPACE.sub('-', cleaned)

    suffix = random_string(suffix_length)
    if not prefix:
        return suffix
    return f'{prefix}-{suffix}'


def generate_slug(label: str, *, model) -> str:
    """
    Return a slug for ``label`` that does not yet exist in ``model``.

    The whole candidate is checked, and only the random suffix is re-drawn
    on collision. The loop is bounded by the suffix entropy (64^7 by
    default), not by a retry count.
    """
    while True:
        candidate = to_slug(label)
        if not model.objects.filter(slug=candidate).exists():
            return candidate
        logger.debug("Slug collision on %s for %s, re-drawing", candidate, model.__name__)


def create_with_unique_slugs(create, *claims):
    """
    Run ``create(*slugs)`` atomically with freshly generated slugs.

    Each claim is a ``(label, model)`` pair and yields one slug, passed to
    ``create`` in the same order. The pre-check in ``generate_slug`` can race
    with a concurrent insert; when the unique constraint rejects the insert
    and one of our candidates has been taken in the meantime, new slugs are
    drawn and the insert retried.

    Raises:
        PersistenceError: If the insert fails for any reason other than a
            slug taken concurrently.
    """
    while True:
        slugs = [generate_slug(label, model=model) for label, model in claims]

        try:
            with transaction.atomic():
                return create(*slugs)
        except IntegrityError as exc:
            taken = [
                slug for (_, model), slug in zip(claims, slugs)
                if model.objects.filter(slug=slug).exists()
            ]
            if not taken:
                logger.error("Insert failed with integrity error: %s", exc)
                raise PersistenceError("Failed to store record") from exc

            logger.warning("Slug %s taken concurrently, retrying", ', '.join(taken))
