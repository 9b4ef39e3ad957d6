"""
Generic CRUD base.
"""
from typing import Any, Dict, Generic, Type, TypeVar

from sqlalchemy.orm import Session

from chatroom.core.database import Base

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType")


class CRUDBase(Generic[ModelType, CreateSchemaType]):
    def __init__(self, model: Type[ModelType]):
        self.model = model

    def create_from_dict(self, db: Session, *, obj_in: Dict[str, Any], commit: bool = True) -> ModelType:
        db_obj = self.model(**obj_in)
        db.add(db_obj)
        if commit:
            db.commit()
            db.refresh(db_obj)
        else:
            db.flush()
        return db_obj
