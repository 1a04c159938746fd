"""Service catalog repository: grooming services and their duration rules."""

from typing import List, Sequence

from groombook.db.base import Service as DbService
from groombook.db.base import ServiceDurationRule as DbDurationRule
from groombook.domain.entities import (
    DurationRule,
    LocationType,
    PetSize,
    Service,
    Species,
)
from groombook.domain.interfaces import ICatalogReader


class CatalogRepository(ICatalogReader):
    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_services(self, service_ids: Sequence[int]) -> List[Service]:
        if not service_ids:
            return []
        db_services = (
            self.db.query(DbService).filter(DbService.id.in_(set(service_ids))).all()
        )
        return [self._service_to_domain(s) for s in db_services]

    def get_duration_rules(self, service_id: int) -> List[DurationRule]:
        db_rules = (
            self.db.query(DbDurationRule)
            .filter_by(service_id=service_id)
            .order_by(DbDurationRule.id)
            .all()
        )
        return [self._rule_to_domain(r) for r in db_rules]

    def _service_to_domain(self, db_service: DbService) -> Service:
        return Service(
            id=db_service.id,
            business_id=db_service.business_id,
            name=db_service.name,
            species_supported=frozenset(
                Species(value) for value in (db_service.species_supported or [])
            ),
            locations_supported=frozenset(
                LocationType(value) for value in (db_service.locations_supported or [])
            ),
            is_active=db_service.is_active,
        )

    def _rule_to_domain(self, db_rule: DbDurationRule) -> DurationRule:
        return DurationRule(
            id=db_rule.id,
            service_id=db_rule.service_id,
            species=Species(db_rule.species),
            size=PetSize(db_rule.size) if db_rule.size else None,
            breed=db_rule.breed,
            base_duration_minutes=db_rule.base_duration_minutes,
            is_default_for_species=db_rule.is_default_for_species,
        )
