"""Generic repository base for SQLAlchemy 2.x.

Repositories are persistence-only: they never commit or roll back, the
services own the Unit of Work. Equality filters honor an optional
``_filterable_fields`` whitelist.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, and_, func, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from twitterclone.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


class BaseRepository(Generic[E]):
    """Generic, persistence-only repository for a single mapped class.

    Subclasses set ``model`` and may override ``_filterable_fields`` and
    ``_default_eagerload``.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """
        :param session: Session shared across the Unit of Work scope. Falls
            back to the Flask-scoped ``db.session`` when omitted.
        """
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Return the injected session, or the Flask-scoped one."""
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    # ------------------------------ Extensibility ----------------------------

    def _default_eagerload(self, stmt: Select[Any]) -> Select[Any]:
        """Hook for ``joinedload``/``selectinload`` options on generic reads."""
        return stmt

    def _pk_attr(self) -> InstrumentedAttribute[Any]:
        pk_attr = getattr(self.model, "id", None)
        if pk_attr is None:
            raise RuntimeError(f"{type(self).__name__} requires an 'id' primary key.")
        return pk_attr

    def _filterable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]] | None:
        """Optional whitelist of equality-filterable fields.

        ``None`` applies every filter key through ``getattr(model, key)``;
        a mapping restricts filters to its keys and silently drops the rest.
        """
        return None

    def _apply_equality_filters(
        self,
        stmt: Select[Any],
        filters: Mapping[str, Any] | None,
    ) -> Select[Any]:
        if not filters:
            return stmt

        allowed = self._filterable_fields()
        clauses: list[Any] = []
        for key, value in filters.items():
            col = getattr(self.model, key) if allowed is None else allowed.get(key)
            if isinstance(col, InstrumentedAttribute):
                clauses.append(col == value)
        return stmt.where(and_(*clauses)) if clauses else stmt

    # --------------------------------- CRUD ----------------------------------

    def add(self, instance: E) -> E:
        """Stage a new entity and flush so its primary key is materialized.

        :param instance: New entity instance.
        :returns: The same instance after ``flush()``.
        """
        self.session.add(instance)
        self.flush()
        return instance

    def get(self, entity_id: Any) -> E | None:
        """Retrieve a single entity by primary key, or ``None``."""
        stmt = self._default_eagerload(select(self.model).where(self._pk_attr() == entity_id))
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def get_for_update(self, entity_id: Any) -> E | None:
        """Retrieve an entity by PK with a ``FOR UPDATE`` row lock.

        Dialects without row locks (SQLite) ignore the clause; callers pair
        this with an in-process lock where that matters.
        """
        stmt = self._default_eagerload(
            select(self.model).where(self._pk_attr() == entity_id)
        ).with_for_update()
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def exists(self, **filters: Any) -> bool:
        """Return ``True`` when at least one row matches the equality filters."""
        stmt: Select[Any] = select(func.count()).select_from(self.model)
        stmt = self._apply_equality_filters(stmt, filters)
        return bool(self.session.execute(stmt).scalar())

    def delete(self, instance: E) -> None:
        """Delete an entity (ORM cascades apply) and flush."""
        self.session.delete(instance)
        self.flush()

    def flush(self) -> None:
        self.session.flush()
