#!/usr/bin/env python
"""
Seed script to populate the database with a demo inspector, property and draft report.

Usage:
    python scripts/seed_data.py --reports 2
"""

import argparse
from datetime import datetime, timezone

from condition_reports.auth.jwt import get_password_hash
from condition_reports.config import Base, SessionLocal, engine
from condition_reports.constants import ConditionState, PropertyType, RoomType, UserRole
from condition_reports.models.models import User, new_id, utcnow
from condition_reports.repositories import build_repositories
from condition_reports.schemas.schemas import GPSCoordinates, PropertyAddress, PropertyCreate
from condition_reports.services.catalog import get_categories
from condition_reports.services.properties import PropertyService
from condition_reports.services.reports import ReportLifecycleManager

DEMO_EMAIL = "inspector@example.com"

DEMO_ROOMS = [
    ("Lounge", RoomType.STANDARD),
    ("Bathroom", RoomType.BATHROOM),
    ("Kitchen", RoomType.KITCHEN),
]


def create_demo_user(repos) -> User:
    user = repos.users.get_by_email(DEMO_EMAIL)
    if user:
        return user
    return repos.users.add(
        User(
            id=new_id(),
            email=DEMO_EMAIL,
            full_name="Demo Inspector",
            hashed_password=get_password_hash("changeme"),
            role=UserRole.TENANT.value,
            is_active=True,
            created_at=utcnow(),
        )
    )


def create_demo_property(repos, user: User):
    payload = PropertyCreate(
        name="Sea Point Apartment",
        property_type=PropertyType.FLAT,
        unit_number="12",
        complex_name="Ocean View",
        address=PropertyAddress(
            street_number="45",
            street_name="Beach Road",
            suburb="Sea Point",
            city="Cape Town",
            province="Western Cape",
            postal_code="8005",
        ),
        gps_coordinates=GPSCoordinates(
            latitude=-33.9137,
            longitude=18.3867,
            accuracy=8.0,
            timestamp=datetime.now(timezone.utc),
        ),
        user_role=UserRole.TENANT,
    )
    return PropertyService(repos).create_property(user.id, payload)


def create_demo_report(repos, user: User, property_id: str, index: int) -> None:
    manager = ReportLifecycleManager(repos)
    report = manager.create_report(user.id, property_id, f"Move-in inspection {index}")
    for name, room_type in DEMO_ROOMS:
        room = manager.add_room(user.id, report.id, name, room_type)
        # First two catalog entries of each room recorded as good.
        for category in get_categories(room_type)[:2]:
            manager.record_inspection_item(user.id, room.id, category.id, ConditionState.GOOD)


def seed_database(reports: int) -> None:
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        repos = build_repositories(session)
        user = create_demo_user(repos)
        prop = create_demo_property(repos, user)
        targets = max(reports, 0)
        for index in range(1, targets + 1):
            create_demo_report(repos, user, prop.id, index)
        print(f"Seed complete. Created {targets} draft reports for {DEMO_EMAIL} (password: 'changeme').")


def main():
    parser = argparse.ArgumentParser(description="Seed the condition report database with demo data.")
    parser.add_argument("--reports", type=int, default=1, help="Number of draft reports to create")
    args = parser.parse_args()
    seed_database(args.reports)


if __name__ == "__main__":
    main()
