# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Activity logging for global and site databases.

Activity rows are an audit trail. Writing one must never break the
operation being audited, so database failures are logged and dropped.
"""

import json
import logging
from typing import Any, Optional, Union

from sqlalchemy.exc import SQLAlchemyError

from src.infrastructure.database.model_factory import GlobalModels, SiteModels
from src.infrastructure.database.models.base import ActivityLogMixin

logger = logging.getLogger(__name__)


def _to_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


async def log_activity(
    models: Union[GlobalModels, SiteModels],
    user_id: Any,
    action: str,
    entity_type: str,
    entity_id: Any = None,
    entity_name: Optional[str] = None,
    details: Union[str, dict[str, Any], None] = None,
    changes_before: Optional[dict[str, Any]] = None,
    changes_after: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    site_id: Optional[int] = None,
) -> Optional[ActivityLogMixin]:
    """Write an activity row to the database of ``models``.

    Args:
        models: Global models for platform events, site models for
            content events.
        user_id: Acting user id, or a free-form actor such as "system".
        action: Action name, e.g. "site_created".
        entity_type: Kind of entity acted on, e.g. "site".
        entity_id: Id of the entity acted on.
        entity_name: Human-readable name of the entity.
        details: Free text, or a dict stored as JSON.
        changes_before: Snapshot before the change, stored as JSON.
        changes_after: Snapshot after the change, stored as JSON.
        ip_address: Client IP address.
        user_agent: Client user agent.
        site_id: Site context; None for platform-wide events.

    Returns:
        The created row, or None if it could not be written.
    """
    try:
        activity_logs = await models.activity_log()
        return await activity_logs.create(
            user_id=str(user_id),
            action=action,
            entity_type=entity_type,
            entity_id=None if entity_id is None else str(entity_id),
            entity_name=entity_name,
            details=_to_json(details),
            changes_before=_to_json(changes_before),
            changes_after=_to_json(changes_after),
            ip_address=ip_address,
            user_agent=user_agent,
            site_id=site_id,
        )
    except SQLAlchemyError:
        logger.exception("Failed to log activity %s on %s %s", action, entity_type, entity_id)
        return None
