# File: embedtrans/repositories/translatable_repository.py
"""
Translatable Repository

Common reads over a model registered with @translates: filtering, searching
and ordering on translated values inside the database, and loading records
already translated into a locale chain.
"""

import logging
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import inspect as sa_inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from embedtrans.core.exceptions import DatabaseException
from embedtrans.db.registry import get_metadata
from embedtrans.repositories.query_builder import (
    has_translation,
    translated,
    translated_contains,
    translated_icontains,
    translated_matches,
)
from embedtrans.services.translator import translate

T = TypeVar("T")

logger = logging.getLogger(__name__)


class TranslatableRepository(Generic[T]):
    """
    Repository for a single translatable model.

    Attributes:
        session (Session): The SQLAlchemy session for database operations
        model (Type[T]): The mapped class this repository manages
    """

    def __init__(self, session: Session, model: Type[T]):
        """
        Initialize the repository with a database session and a model.

        Args:
            session: SQLAlchemy database session
            model: A mapped class registered with @translates

        Raises:
            NotRegisteredException: If the model has no translation metadata
        """
        self.metadata = get_metadata(model)
        self.session = session
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def _primary_key(self):
        return sa_inspect(self.model).primary_key[0]

    def _all(self, stmt, locale_or_chain: Any = None) -> List[T]:
        entities = self.session.execute(stmt).scalars().all()
        if locale_or_chain is None:
            return list(entities)
        return [translate(entity, locale_or_chain) for entity in entities]

    def get_by_id(self, id: Any, locale_or_chain: Any = None) -> Optional[T]:
        """
        Retrieve a record by primary key, optionally translated.

        Args:
            id: Primary key value
            locale_or_chain: Locale chain to translate the record into

        Returns:
            The record (or its translated copy) if found, None otherwise

        Raises:
            DatabaseException: If database operation fails
        """
        try:
            entity = self.session.get(self.model, id)
        except SQLAlchemyError as e:
            self.logger.error(f"Database error loading {self.model.__name__} {id}: {e}", exc_info=True)
            raise DatabaseException(f"Failed to load {self.model.__name__}: {str(e)}")

        if entity is None or locale_or_chain is None:
            return entity
        return translate(entity, locale_or_chain)

    def list_translated(self, locale_or_chain: Any, skip: int = 0, limit: int = 100) -> List[T]:
        """
        Retrieve a page of records translated into a locale chain.

        Raises:
            DatabaseException: If database operation fails
        """
        stmt = select(self.model).order_by(self._primary_key()).offset(skip).limit(limit)
        try:
            return self._all(stmt, locale_or_chain)
        except SQLAlchemyError as e:
            self.logger.error(f"Database error listing {self.model.__name__}: {e}", exc_info=True)
            raise DatabaseException(f"Failed to list {self.model.__name__}: {str(e)}")

    def find_by_translation(self, attribute: Any, locale_or_chain: Any, value: Any) -> List[T]:
        """
        Find records whose translated attribute equals a value.

        Args:
            attribute: Translatable attribute, e.g. ``Article.title``
            locale_or_chain: Locales to resolve the attribute in
            value: Value to compare with

        Returns:
            Matching records, untranslated

        Raises:
            UntranslatableAttributeException: If the attribute is not translatable
            DatabaseException: If database operation fails
        """
        stmt = (
            select(self.model)
            .where(translated_matches(self.model, attribute, locale_or_chain, value))
            .order_by(self._primary_key())
        )
        try:
            entities = self._all(stmt)
            self.logger.debug(f"Found {len(entities)} {self.model.__name__} records by translation")
            return entities
        except SQLAlchemyError as e:
            self.logger.error(f"Database error finding by translation: {e}", exc_info=True)
            raise DatabaseException(f"Failed to find by translation: {str(e)}")

    def search_translation(
        self,
        attribute: Any,
        locale_or_chain: Any,
        term: str,
        case_sensitive: bool = False,
    ) -> List[T]:
        """
        Search records whose translated attribute contains a term.

        Raises:
            UntranslatableAttributeException: If the attribute is not translatable
            DatabaseException: If database operation fails
        """
        if case_sensitive:
            condition = translated_contains(self.model, attribute, locale_or_chain, term)
        else:
            condition = translated_icontains(self.model, attribute, locale_or_chain, term)

        stmt = select(self.model).where(condition).order_by(self._primary_key())
        try:
            return self._all(stmt)
        except SQLAlchemyError as e:
            self.logger.error(f"Database error searching translations for '{term}': {e}", exc_info=True)
            raise DatabaseException(f"Failed to search translations: {str(e)}")

    def list_with_translation(self, locale_or_chain: Any) -> List[T]:
        """
        Retrieve records that have a translation entry in any of the locales.

        Raises:
            DatabaseException: If database operation fails
        """
        stmt = (
            select(self.model)
            .where(has_translation(self.model, self.model, locale_or_chain))
            .order_by(self._primary_key())
        )
        try:
            return self._all(stmt)
        except SQLAlchemyError as e:
            self.logger.error(f"Database error listing translated records: {e}", exc_info=True)
            raise DatabaseException(f"Failed to list translated records: {str(e)}")

    def order_by_translation(
        self,
        attribute: Any,
        locale_or_chain: Any,
        descending: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> List[T]:
        """
        Retrieve records ordered by a translated attribute.

        Raises:
            UntranslatableAttributeException: If the attribute is not translatable
            DatabaseException: If database operation fails
        """
        expression = translated(self.model, attribute, locale_or_chain)
        ordering = expression.desc() if descending else expression.asc()
        stmt = (
            select(self.model)
            .order_by(ordering, self._primary_key())
            .offset(skip)
            .limit(limit)
        )
        try:
            return self._all(stmt)
        except SQLAlchemyError as e:
            self.logger.error(f"Database error ordering by translation: {e}", exc_info=True)
            raise DatabaseException(f"Failed to order by translation: {str(e)}")
