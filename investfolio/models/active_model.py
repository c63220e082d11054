"""ActiveRecord-style base Model class.

Provides object-relational mapping with ActiveRecord pattern:
- Instance methods for persistence (save, delete)
- Class methods for queries (find_by_id, find_by, where)
"""

from datetime import datetime, timezone
from typing import Any, Optional

from investfolio.database import Database


class ActiveModelError(Exception):
    """Raised when a model fails validation."""

    pass


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ActiveModel:
    """Base class for ActiveRecord-style models.

    Subclasses must define:
    - table_name: Name of the database table
    - primary_key: Name of the primary key column
    - primary_key_type: Type of primary key ("TEXT" or "INTEGER")

    Subclasses may define ``_allowed_fields`` to reject unknown attributes.
    """

    table_name: str
    primary_key: str
    primary_key_type: str  # "TEXT" or "INTEGER"
    _allowed_fields: frozenset[str] = frozenset()

    def __init__(self, database: Database, **kwargs):
        """Initialize model instance.

        Args:
            database: Database instance for connections
            **kwargs: Model attributes (column values)

        Raises:
            AttributeError: If the subclass is missing a required class attribute
            ValueError: If kwargs contain fields outside ``_allowed_fields``
        """
        for attr in ("table_name", "primary_key", "primary_key_type"):
            if not hasattr(self, attr):
                raise AttributeError(
                    f"{self.__class__.__name__} must define '{attr}' class attribute"
                )

        if self._allowed_fields:
            invalid_fields = set(kwargs) - self._allowed_fields
            if invalid_fields:
                raise ValueError(f"Invalid fields: {sorted(invalid_fields)}")

        self._database = database

        for key, value in kwargs.items():
            setattr(self, key, value)

        now = _now()
        if getattr(self, "created_at", None) is None:
            self.created_at = now
        if getattr(self, "updated_at", None) is None:
            self.updated_at = now

    def _get_attributes(self) -> dict[str, Any]:
        """Column names and values (everything not prefixed with "_")."""
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}

    def _before_save(self) -> None:
        """Hook called before save; subclasses validate here.

        Raises:
            ActiveModelError: If validation fails
        """
        pass

    def _after_save(self) -> None:
        """Hook called after a successful save."""
        pass

    def _save_to_database(self, conn, is_new: bool) -> None:
        """Perform the INSERT or UPDATE.

        Args:
            conn: Database connection
            is_new: True for INSERT, False for UPDATE

        Raises:
            SQLiteError: If database operation fails
        """
        cursor = conn.cursor()
        self.updated_at = _now()
        attrs = self._get_attributes()

        if is_new:
            if self.primary_key_type == "INTEGER":
                # INTEGER PRIMARY KEY auto-increments, exclude from INSERT
                attrs.pop(self.primary_key, None)
            elif attrs.get(self.primary_key) is None:
                raise ValueError(
                    f"{self.primary_key} is required for new "
                    f"{self.__class__.__name__} record"
                )

            columns = ", ".join(attrs.keys())
            placeholders = ", ".join("?" * len(attrs))
            cursor.execute(
                f"INSERT INTO {self.table_name} ({columns}) VALUES ({placeholders})",
                list(attrs.values()),
            )

            if self.primary_key_type == "INTEGER":
                setattr(self, self.primary_key, cursor.lastrowid)
        else:
            update_cols = [col for col in attrs if col != self.primary_key]
            if not update_cols:
                raise ValueError("No fields to update")

            set_clauses = ", ".join(f"{col} = ?" for col in update_cols)
            values = [attrs[col] for col in update_cols]
            values.append(attrs[self.primary_key])
            cursor.execute(
                f"UPDATE {self.table_name} SET {set_clauses} "
                f"WHERE {self.primary_key} = ?",
                values,
            )

    def save(self) -> bool:
        """Save record (insert or update).

        Template method: _before_save() -> _save_to_database() -> _after_save().

        Returns:
            True on success

        Raises:
            ActiveModelError: If validation fails (from _before_save)
            SQLiteError: If database operation fails
        """
        self._before_save()

        pk_value = getattr(self, self.primary_key, None)
        is_new = pk_value is None
        if not is_new and self.primary_key_type == "TEXT":
            is_new = self.find_by_id(self._database, pk_value) is None

        with self._database.connection() as conn:
            self._save_to_database(conn, is_new)

        self._after_save()
        return True

    def delete(self) -> bool:
        """Delete record from database.

        Returns:
            True if a row was deleted, False if it was already gone

        Raises:
            ValueError: If primary key is not set
            SQLiteError: If database operation fails
        """
        pk_value = getattr(self, self.primary_key, None)
        if pk_value is None:
            raise ValueError(
                f"Cannot delete {self.__class__.__name__} without {self.primary_key}"
            )

        with self._database.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"DELETE FROM {self.table_name} WHERE {self.primary_key} = ?",
                (pk_value,),
            )
            return cursor.rowcount > 0

    @classmethod
    def _from_row(cls, database: Database, cursor, row) -> "ActiveModel":
        columns = [desc[0] for desc in cursor.description]
        return cls(database, **dict(zip(columns, row)))

    @classmethod
    def find_by_id(cls, database: Database, pk_value: Any) -> Optional["ActiveModel"]:
        """Find record by primary key, or None."""
        with database.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT * FROM {cls.table_name} WHERE {cls.primary_key} = ?",
                (pk_value,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return cls._from_row(database, cursor, row)

    @classmethod
    def find_by(cls, database: Database, **kwargs) -> Optional["ActiveModel"]:
        """Find first record matching criteria."""
        results = cls.where(database, **kwargs, _limit=1)
        return results[0] if results else None

    @classmethod
    def where(cls, database: Database, **kwargs) -> list["ActiveModel"]:
        """Find all records matching criteria.

        Args:
            database: Database instance
            **kwargs: Column name and value pairs to match
                Special: _limit limits results, _order_by is an ORDER BY
                expression (defaults to insertion order)

        Returns:
            List of Model instances
        """
        limit = kwargs.pop("_limit", None)
        order_by = kwargs.pop("_order_by", "rowid")

        query = f"SELECT * FROM {cls.table_name}"
        if kwargs:
            query += " WHERE " + " AND ".join(f"{col} = ?" for col in kwargs)
        if order_by:
            query += f" ORDER BY {order_by}"
        if limit:
            query += f" LIMIT {int(limit)}"

        with database.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, list(kwargs.values()))
            rows = cursor.fetchall()
            return [cls._from_row(database, cursor, row) for row in rows]
