from typing import List, Sequence

from groombook.db.base import Pet as DbPet
from groombook.domain.entities import Pet, PetSize, Species
from groombook.domain.interfaces import IPetReader


class PetRepository(IPetReader):
    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_pets(self, pet_ids: Sequence[int]) -> List[Pet]:
        if not pet_ids:
            return []
        db_pets = self.db.query(DbPet).filter(DbPet.id.in_(set(pet_ids))).all()
        return [self._to_domain(p) for p in db_pets]

    def _to_domain(self, db_pet: DbPet) -> Pet:
        return Pet(
            id=db_pet.id,
            owner_user_id=db_pet.owner_user_id,
            species=Species(db_pet.species),
            size=PetSize(db_pet.size),
            breed=db_pet.breed,
            name=db_pet.name,
        )
