"""Durable storage for positions.

The ledger talks to storage through the PositionStore interface. The SQLite
implementation maps positions onto the ``investments`` table.
"""

import logging
from typing import Protocol

from investfolio.database import Database, DatabaseError, SQLiteError
from investfolio.errors import PersistenceError
from investfolio.models.active_model import ActiveModelError
from investfolio.models.investment import InvestmentRecord
from investfolio.position import Position

logger = logging.getLogger(__name__)


class PositionStore(Protocol):
    """CRUD for positions keyed by user identity.

    Every method raises PersistenceError on failure.
    """

    def save_position(self, user_id: str, position: Position) -> None: ...

    def update_position(self, user_id: str, position: Position) -> None: ...

    def delete_position(self, user_id: str, position_id: str) -> None: ...

    def list_positions(self, user_id: str) -> list[Position]: ...


class SQLitePositionStore:
    """PositionStore backed by the local SQLite database."""

    def __init__(self, database: Database):
        self.database = database

    def save_position(self, user_id: str, position: Position) -> None:
        record = InvestmentRecord.from_position(self.database, user_id, position)
        self._run(f"save position {position.id}", record.save)

    def update_position(self, user_id: str, position: Position) -> None:
        def update():
            record = InvestmentRecord.find_by(
                self.database, id=position.id, user_id=user_id
            )
            if record is None:
                raise PersistenceError(
                    f"Position {position.id} not found in storage for this user"
                )
            record.apply(position)
            record.save()

        self._run(f"update position {position.id}", update)

    def delete_position(self, user_id: str, position_id: str) -> None:
        def delete():
            record = InvestmentRecord.find_by(
                self.database, id=position_id, user_id=user_id
            )
            if record is None:
                logger.debug(f"Position {position_id} not stored for this user")
                return
            record.delete()

        self._run(f"delete position {position_id}", delete)

    def list_positions(self, user_id: str) -> list[Position]:
        records = self._run(
            "list positions", lambda: InvestmentRecord.for_user(self.database, user_id)
        )
        return [record.to_position() for record in records]

    def _run(self, action: str, operation):
        try:
            return operation()
        except PersistenceError:
            raise
        except (ActiveModelError, DatabaseError, SQLiteError, ValueError) as e:
            logger.error(f"Failed to {action}: {e}")
            raise PersistenceError(f"Failed to {action}: {e}") from e
