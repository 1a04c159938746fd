"""
Database seeding functions.

Creates a demo business with working hours, services, duration rules and a
client with two pets. Every function is idempotent: existing rows are
returned unchanged, so the seed can run on every deploy.
"""

import logging
import os
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from groombook.db.base import (
    BusinessWorkingHour,
    GroomerBusiness,
    Pet,
    Service,
    ServiceDurationRule,
    User,
)
from groombook.db.session import SessionLocal

logger = logging.getLogger(__name__)


def _ensure_user(db: Session, email: str, name: str, role: str) -> User:
    user = db.scalars(select(User).where(User.email == email)).first()
    if user is None:
        user = User(email=email, name=name, role=role)
        db.add(user)
        db.flush()
        logger.info(
            "Seed user created",
            extra={"context": {"user_id": user.id, "email": email, "role": role}},
        )
    return user


def _ensure_business(db: Session, owner: User) -> GroomerBusiness:
    business = db.scalars(
        select(GroomerBusiness).where(GroomerBusiness.owner_user_id == owner.id)
    ).first()
    if business is not None:
        return business

    business = GroomerBusiness(
        owner_user_id=owner.id,
        name="Groomer Studio",
        offers_in_salon=True,
        offers_at_home=True,
        max_dogs_per_home_visit=2,
        home_visit_setup_minutes=10,
        home_visit_teardown_minutes=10,
        default_transport_minutes=15,
        min_hours_before_cancel_or_reschedule=24,
    )
    # Monday to Friday, 09:00-18:00
    business.working_hours = [
        BusinessWorkingHour(weekday=weekday, start_time="09:00", end_time="18:00")
        for weekday in (1, 2, 3, 4, 5)
    ]
    db.add(business)
    db.flush()
    return business


def _ensure_services(db: Session, business: GroomerBusiness) -> List[Service]:
    services = list(
        db.scalars(select(Service).where(Service.business_id == business.id)).all()
    )
    if services:
        return services

    services = [
        Service(
            business_id=business.id,
            name="Premium bath",
            description="Full bath with blow dry",
            species_supported=["DOG", "CAT"],
            locations_supported=["IN_SALON", "AT_HOME"],
        ),
        Service(
            business_id=business.id,
            name="Cut and style",
            description="Haircut with styling",
            species_supported=["DOG"],
            locations_supported=["IN_SALON"],
        ),
    ]
    for service in services:
        service.duration_rules = [
            ServiceDurationRule(species="DOG", size="SMALL", base_duration_minutes=45),
            ServiceDurationRule(species="DOG", size="MEDIUM", base_duration_minutes=60),
            ServiceDurationRule(
                species="DOG", base_duration_minutes=50, is_default_for_species=True
            ),
            ServiceDurationRule(
                species="CAT", base_duration_minutes=45, is_default_for_species=True
            ),
        ]
        db.add(service)
    db.flush()
    return services


def _ensure_pets(db: Session, client: User) -> List[Pet]:
    pets = list(db.scalars(select(Pet).where(Pet.owner_user_id == client.id)).all())
    if pets:
        return pets

    pets = [
        Pet(owner_user_id=client.id, name="Luna", species="DOG", breed="Poodle", size="SMALL"),
        Pet(owner_user_id=client.id, name="Milo", species="CAT", breed="Mixed", size="SMALL"),
    ]
    db.add_all(pets)
    db.flush()
    return pets


def seed_demo_data() -> Dict[str, int]:
    """
    Seed the demo business and return the IDs of the created records.

    Environment Variables:
        SEED_GROOMER_EMAIL: Owner email. Default: 'owner@groomer.local'
        SEED_CLIENT_EMAIL: Client email. Default: 'client@groomer.local'
    """
    owner_email = os.getenv("SEED_GROOMER_EMAIL", "owner@groomer.local")
    client_email = os.getenv("SEED_CLIENT_EMAIL", "client@groomer.local")

    with SessionLocal() as db:
        owner = _ensure_user(db, owner_email, "Studio Owner", "GROOMER_OWNER")
        client = _ensure_user(db, client_email, "Demo Client", "CLIENT")
        business = _ensure_business(db, owner)
        services = _ensure_services(db, business)
        pets = _ensure_pets(db, client)
        db.commit()

        ids = {
            "owner_id": owner.id,
            "client_id": client.id,
            "business_id": business.id,
            "service_ids": [service.id for service in services],
            "pet_ids": [pet.id for pet in pets],
        }

    logger.info("Demo data seeded", extra={"context": ids})
    return ids
