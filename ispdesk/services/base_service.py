"""
BaseCRUDService: Generic service class for standard CRUD operations.
Reduces code duplication across domain-specific services.
"""
from typing import Any, Dict, Generic, List, Type, TypeVar

from fastapi import HTTPException
from sqlmodel import Session, select

from ..models.types import utcnow

# Generic type for SQLModel models
ModelType = TypeVar("ModelType")


class BaseCRUDService(Generic[ModelType]):
    """
    Base class providing generic CRUD (Create, Read, Update, Delete) operations.

    Usage:
        class MyService(BaseCRUDService[MyModel]):
            def __init__(self, session: Session):
                super().__init__(session, MyModel)
    """

    def __init__(self, session: Session, model: Type[ModelType]):
        """
        Initialize the service with a database session and model class.

        Args:
            session: SQLModel database session.
            model: The SQLModel class this service manages.
        """
        self.session = session
        self.model = model

    def get_all(self) -> List[ModelType]:
        """Retrieve all records of the model."""
        statement = select(self.model)
        return self.session.exec(statement).all()

    def get_by_id(self, id: int) -> ModelType:
        """
        Retrieve a single record by its primary key.

        Raises:
            HTTPException: 404 if not found.
        """
        record = self.session.get(self.model, id)
        if not record:
            raise HTTPException(status_code=404, detail=f"{self.model.__name__} not found")
        return record

    def create(self, data: Dict[str, Any]) -> ModelType:
        try:
            new_record = self.model(**data)
            self.session.add(new_record)
            self.session.commit()
            self.session.refresh(new_record)
            return new_record
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Error creating {self.model.__name__}: {str(e)}")

    def update(self, id: int, data: Dict[str, Any]) -> ModelType:
        """
        Update an existing record with the given fields.

        Raises:
            HTTPException: 404 if not found.
        """
        record = self.get_by_id(id)  # Raises HTTPException if not found

        for key, value in data.items():
            if hasattr(record, key) and key != "id":
                setattr(record, key, value)
        if hasattr(record, "updated_at"):
            record.updated_at = utcnow()

        return self.save(record)

    def save(self, record: ModelType) -> ModelType:
        try:
            self.session.add(record)
            self.session.commit()
            self.session.refresh(record)
            return record
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Error saving {self.model.__name__}: {str(e)}")

    def delete(self, id: int) -> None:
        record = self.get_by_id(id)  # Raises HTTPException if not found
        self.session.delete(record)
        self.session.commit()
