"""
Case dictionary service: global priorities and case types.

Both dictionaries are shared by all projects and referenced by name during
import ("High", "Smoke"), so the default vocabulary must exist before the
first import. ``seed_case_dictionaries`` is idempotent and is exposed as the
``flask seed-case-dictionaries`` CLI command.

Transaction policy: flush only; the CLI command / blueprint commits.
"""

import logging

from testhub.models import db
from testhub.models.catalog import DEFAULT_CASE_TYPES, DEFAULT_PRIORITIES, CasePriority, CaseType
from testhub.utils.strings import normalize_key

logger = logging.getLogger(__name__)


def _seed(model, names) -> int:
    existing = {normalize_key(row.name) for row in db.session.query(model)}
    added = 0
    for order, name in enumerate(names):
        if normalize_key(name) in existing:
            continue
        db.session.add(model(name=name, sort_order=order))
        added += 1
    return added


def seed_case_dictionaries() -> int:
    """Insert missing default priorities and types; returns the number of rows added."""
    added = _seed(CasePriority, DEFAULT_PRIORITIES) + _seed(CaseType, DEFAULT_CASE_TYPES)
    db.session.flush()
    logger.info("Seeded %d case dictionary rows", added)
    return added


def list_case_dictionaries() -> dict:
    return {
        "priorities": [p.to_dict() for p in CasePriority.query.order_by(CasePriority.sort_order)],
        "types": [t.to_dict() for t in CaseType.query.order_by(CaseType.sort_order)],
    }
