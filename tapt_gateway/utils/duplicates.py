"""
Duplicate Guard
===============

Advisory uniqueness checks run right before a public submission is inserted.

Like the rate limiter this is read-then-write; a unique index on the table is
the only hard guarantee.
"""

import logging
from typing import Sequence

from tapt_gateway.db.store import Filter, RowStore
from tapt_gateway.errors import DuplicateSubmission
from tapt_gateway.models.submissions import MembershipSubmission, NominationSubmission, ReviewStatus

logger = logging.getLogger(__name__)


def ensure_unique(store: RowStore, table: str, filters: Sequence[Filter], message: str):
    """Raise DuplicateSubmission if any row in `table` matches `filters`."""
    existing = store.count(table, filters)
    if existing > 0:
        logger.info(f"ℹ️  Duplicate submission rejected on {table}: {[f[0] for f in filters]}")
        raise DuplicateSubmission(message)


def nomination_key(nomination: NominationSubmission):
    """Same nominee (first + last name) from the same district."""
    return [
        ("nominee_first_name", "eq", nomination.nominee_first_name),
        ("nominee_last_name", "eq", nomination.nominee_last_name),
        ("district", "eq", nomination.district),
    ]


def membership_key(application: MembershipSubmission):
    """One pending application per email."""
    return [
        ("email", "eq", application.email),
        ("status", "eq", ReviewStatus.PENDING.value),
    ]
