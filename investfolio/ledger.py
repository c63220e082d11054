"""Per-user ledger of positions.

Every mutation is staged on a copy of the position map, written to the store,
and only then committed. If the store fails, the copy is dropped and the
ledger keeps its previous state.

One ledger serves one user account. Mutations on it are serialized by a lock;
two edits of the same position are applied in call order (last write wins).
"""

import logging
import threading
from typing import Any, Callable, Optional

from investfolio.errors import NotFoundError, PersistenceError
from investfolio.persistence import PositionStore
from investfolio.position import Position, PositionDraft
from investfolio.valuation import ValuationResult

logger = logging.getLogger(__name__)

DEFAULT_USER_ID = "local"


class PortfolioLedger:
    def __init__(
        self, user_id: str = DEFAULT_USER_ID, store: Optional[PositionStore] = None
    ):
        """Initialize an empty ledger.

        Args:
            user_id: Account the positions belong to
            store: Durable storage; None keeps positions in memory only
        """
        self.user_id = user_id
        self.store = store
        self._positions: dict[str, Position] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._positions)

    def __contains__(self, position_id: str) -> bool:
        return position_id in self._positions

    def load(self) -> list[Position]:
        """Replace in-memory positions with the stored ones.

        Raises:
            PersistenceError: If the store can't be read
        """
        if self.store is None:
            return self.list()

        positions = self.store.list_positions(self.user_id)
        with self._lock:
            self._positions = {p.id: p for p in positions}
        logger.info(f"Loaded {len(positions)} positions")
        return self.list()

    def list(self) -> list[Position]:
        """Positions in insertion order."""
        with self._lock:
            return list(self._positions.values())

    def get(self, position_id: str) -> Position:
        """Return a position by id.

        Raises:
            NotFoundError: If the id is unknown
        """
        with self._lock:
            position = self._positions.get(position_id)
        if position is None:
            raise NotFoundError(f"Position {position_id} not found")
        return position

    def add(self, draft: PositionDraft) -> Position:
        """Validate a draft and add it as a new position.

        Raises:
            ValidationError: If the draft is invalid
            PersistenceError: If the store rejects the new position
        """
        position = Position.from_draft(draft)

        def stage(positions: dict[str, Position]) -> None:
            positions[position.id] = position

        self._apply(
            stage, lambda store: store.save_position(self.user_id, position)
        )
        logger.info(f"Added position {position.id} ({position.asset_name})")
        return position

    def edit(
        self, position_id: str, amount_invested: Any, quantity: Any = None
    ) -> Position:
        """Set a new cost basis for a position.

        The edit is a fresh checkpoint: current value is reset to the new
        amount invested and performance to 0.

        Raises:
            NotFoundError: If the id is unknown
            ValidationError: If the new values are invalid
            PersistenceError: If the store rejects the update
        """
        with self._lock:
            updated = self.get(position_id).rebased(amount_invested, quantity)

            def stage(positions: dict[str, Position]) -> None:
                positions[position_id] = updated

            self._apply(
                stage, lambda store: store.update_position(self.user_id, updated)
            )

        logger.info(f"Edited position {position_id}")
        return updated

    def remove(self, position_id: str) -> None:
        """Remove a position. Removing an unknown id is a no-op.

        Raises:
            PersistenceError: If the store rejects the deletion
        """
        with self._lock:
            if position_id not in self._positions:
                logger.debug(f"Position {position_id} already removed")
                return

            def stage(positions: dict[str, Position]) -> None:
                del positions[position_id]

            self._apply(
                stage, lambda store: store.delete_position(self.user_id, position_id)
            )

        logger.info(f"Removed position {position_id}")

    def apply_valuation(
        self, result: ValuationResult, persist: bool = False
    ) -> "list[Position]":
        """Commit revalued positions produced from a snapshot of this ledger.

        A revalued position is skipped when the ledger's copy changed since
        the snapshot (edited or removed), so a stale valuation never overwrites
        a newer cost basis.

        Args:
            result: Output of valuation.revalue()
            persist: Also write each applied position to the store

        Returns:
            Positions that were applied

        Raises:
            PersistenceError: If some positions could not be stored; the ones
                that were stored are still applied
        """
        touched = set(result.touched_ids)
        applied = []
        failed = []

        with self._lock:
            for valued in result.updated_positions:
                if valued.id not in touched:
                    continue
                current = self._positions.get(valued.id)
                if current is None or not _same_cost_basis(current, valued):
                    logger.debug(f"Skipping stale valuation of {valued.id}")
                    continue

                def stage(positions: dict[str, Position], valued=valued) -> None:
                    positions[valued.id] = valued

                persist_fn = None
                if persist:
                    persist_fn = lambda store, valued=valued: store.update_position(
                        self.user_id, valued
                    )
                try:
                    self._apply(stage, persist_fn)
                except PersistenceError as e:
                    logger.error(f"Failed to store valuation of {valued.id}: {e}")
                    failed.append(valued.id)
                    continue
                applied.append(valued)

        if failed:
            raise PersistenceError(
                f"Failed to store valuation for {len(failed)} position(s): "
                f"{', '.join(failed)}"
            )
        return applied

    def _apply(
        self,
        stage: Callable[[dict[str, Position]], None],
        persist: Optional[Callable[[PositionStore], None]],
    ) -> None:
        with self._lock:
            staging = dict(self._positions)
            stage(staging)
            if self.store is not None and persist is not None:
                persist(self.store)
            self._positions = staging


def _same_cost_basis(a: Position, b: Position) -> bool:
    return (
        a.asset_name == b.asset_name
        and a.category is b.category
        and a.amount_invested == b.amount_invested
        and a.quantity == b.quantity
    )
