"""Business repository: groomer businesses, their working hours and staff."""

from typing import Optional

from groombook.db.base import GroomerBusiness as DbBusiness
from groombook.db.base import GroomerStaffMember as DbStaffMember
from groombook.domain.entities import Business, WorkingHourBlock
from groombook.domain.interfaces import IBusinessReader


class BusinessRepository(IBusinessReader):
    """Read-only access to business configuration."""

    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_by_id(self, business_id: int) -> Optional[Business]:
        db_business = self.db.query(DbBusiness).filter_by(id=business_id).first()
        return self._to_domain(db_business) if db_business else None

    def get_by_owner(self, owner_user_id: int) -> Optional[Business]:
        db_business = (
            self.db.query(DbBusiness).filter_by(owner_user_id=owner_user_id).first()
        )
        return self._to_domain(db_business) if db_business else None

    def has_active_staff(self, business_id: int) -> bool:
        return (
            self.db.query(DbStaffMember.id)
            .filter_by(business_id=business_id, is_active=True)
            .first()
            is not None
        )

    def is_active_staff(self, business_id: int, user_id: int) -> bool:
        return (
            self.db.query(DbStaffMember.id)
            .filter_by(business_id=business_id, user_id=user_id, is_active=True)
            .first()
            is not None
        )

    def _to_domain(self, db_business: DbBusiness) -> Business:
        return Business(
            id=db_business.id,
            owner_user_id=db_business.owner_user_id,
            name=db_business.name,
            offers_in_salon=db_business.offers_in_salon,
            offers_at_home=db_business.offers_at_home,
            max_dogs_per_home_visit=db_business.max_dogs_per_home_visit,
            home_visit_setup_minutes=db_business.home_visit_setup_minutes,
            home_visit_teardown_minutes=db_business.home_visit_teardown_minutes,
            default_transport_minutes=db_business.default_transport_minutes,
            min_hours_before_cancel_or_reschedule=(
                db_business.min_hours_before_cancel_or_reschedule
            ),
            timezone=db_business.timezone,
            working_hours=[
                WorkingHourBlock.from_strings(hour.weekday, hour.start_time, hour.end_time)
                for hour in db_business.working_hours
            ],
        )
