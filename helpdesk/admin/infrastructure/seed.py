"""
Reference Data Seeding
======================

Loads users, categories and SLA targets from a YAML file and inserts the
records that are not in the database yet. Re-running is harmless.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

import yaml

from helpdesk.admin.application import (
    IUserRepository, ICategoryRepository, ISLATargetRepository
)
from helpdesk.admin.domain import User, Category, SLATarget
from helpdesk.core import ConfigurationException
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


def load_seed_data(path: Path) -> dict:
    """
    Read and minimally validate the seed file.

    Raises:
        ConfigurationException: File missing or not a mapping
    """
    if not path.exists():
        raise ConfigurationException(f"Seed file not found: {path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationException(f"Seed file must contain a mapping: {path}")

    for section in ("users", "categories", "sla_targets"):
        data.setdefault(section, [])
    return data


async def seed_reference_data(
    data: dict,
    user_repo: IUserRepository,
    category_repo: ICategoryRepository,
    sla_target_repo: ISLATargetRepository,
    now: Optional[datetime] = None
) -> Dict[str, int]:
    """
    Insert missing users, categories and SLA targets.

    Users are matched by id or email, categories by id, SLA targets by
    priority.

    Returns:
        Number of records created per section
    """
    now = now or datetime.now(timezone.utc)
    created = {"users": 0, "categories": 0, "sla_targets": 0}

    for item in data["users"]:
        email = item["email"].strip().lower()
        if await user_repo.get_by_id(item["id"]) or await user_repo.get_by_email(email):
            continue
        await user_repo.create(User(
            id=item["id"],
            name=item["name"],
            email=email,
            password=item["password"],
            role=item.get("role", "user"),
            created_at=now,
            department=item.get("department", ""),
            position=item.get("position", ""),
            phone=item.get("phone", "")
        ))
        created["users"] += 1

    for item in data["categories"]:
        if await category_repo.get_by_id(item["id"]):
            continue
        await category_repo.create(Category(
            id=item["id"],
            name=item["name"],
            sla_hours=int(item["sla_hours"]),
            created_at=now,
            description=item.get("description", ""),
            color=item.get("color", "#3B82F6"),
            is_active=item.get("is_active", True)
        ))
        created["categories"] += 1

    existing_priorities = {t.priority for t in await sla_target_repo.list()}
    for item in data["sla_targets"]:
        if item["priority"] in existing_priorities:
            continue
        await sla_target_repo.create(SLATarget(
            id=item.get("id") or f"sla-{item['priority']}",
            priority=item["priority"],
            response_hours=int(item["response_hours"]),
            resolution_hours=int(item["resolution_hours"])
        ))
        created["sla_targets"] += 1

    logger.info("Reference data seeded", extra=created)
    return created
