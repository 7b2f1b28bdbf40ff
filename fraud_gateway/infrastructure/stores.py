"""Profile storage backends"""

import copy
import json
from typing import Dict, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fraud_gateway.domain.exceptions import StorageError
from fraud_gateway.domain.models import BehavioralProfile
from fraud_gateway.infrastructure.database.models import BehavioralProfileRecord


class ProfileStore(Protocol):
    """Persistence for behavioral profiles. Implementations raise StorageError on I/O failure."""

    def load(self, user_id: str) -> Optional[BehavioralProfile]: ...

    def save(self, profile: BehavioralProfile) -> None: ...

    def delete(self, user_id: str) -> None: ...


class InMemoryProfileStore:
    """Dict-backed store holding serialized copies, for library use and tests"""

    def __init__(self) -> None:
        self._documents: Dict[str, str] = {}

    def load(self, user_id: str) -> Optional[BehavioralProfile]:
        document = self._documents.get(user_id)
        if document is None:
            return None
        return BehavioralProfile.from_dict(json.loads(document))

    def save(self, profile: BehavioralProfile) -> None:
        self._documents[profile.user_id] = json.dumps(profile.to_dict())

    def delete(self, user_id: str) -> None:
        self._documents.pop(user_id, None)


class SqlProfileStore:
    """One JSON document per user in the behavioral_profile table"""

    def __init__(self, db: Session):
        self.db = db

    def load(self, user_id: str) -> Optional[BehavioralProfile]:
        try:
            record = self.db.get(BehavioralProfileRecord, user_id)
        except SQLAlchemyError as e:
            raise StorageError("load", user_id, str(e)) from e

        if record is None:
            return None

        try:
            return BehavioralProfile.from_dict(copy.deepcopy(record.profile))
        except (KeyError, ValueError, TypeError) as e:
            raise StorageError("load", user_id, f"corrupt profile document: {e}") from e

    def save(self, profile: BehavioralProfile) -> None:
        try:
            record = self.db.get(BehavioralProfileRecord, profile.user_id)
            if record is None:
                record = BehavioralProfileRecord(user_id=profile.user_id)
                self.db.add(record)
            record.profile = profile.to_dict()
            record.trust_score = profile.trust_score
            record.transaction_count = profile.patterns.transaction_count
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError("save", profile.user_id, str(e)) from e

    def delete(self, user_id: str) -> None:
        try:
            record = self.db.get(BehavioralProfileRecord, user_id)
            if record is not None:
                self.db.delete(record)
                self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError("delete", user_id, str(e)) from e
