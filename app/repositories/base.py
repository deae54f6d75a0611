from typing import Any, Dict, Generic, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.db.base_class import Base

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


class BaseRepository(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """
    CRUD genérico sobre un modelo con clave primaria `id`.

    create/update/remove confirman la transacción; las operaciones que deben
    ir junto a los contadores de plazas viven en los repositorios concretos.
    """

    def __init__(self, model: Type[ModelType]):
        self.model = model

    def get(self, db: Session, id: Any) -> Optional[ModelType]:
        return db.query(self.model).filter(self.model.id == id).first()

    def create(self, db: Session, *, obj_in: Union[CreateSchemaType, Dict[str, Any]]) -> ModelType:
        """
        Insertar un registro a partir de un schema o de un diccionario.
        """
        # model_dump() conserva los tipos date/time que jsonable_encoder convertiría a texto
        values = dict(obj_in) if isinstance(obj_in, dict) else obj_in.model_dump()
        db_obj = self.model(**values)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def update(
        self,
        db: Session,
        *,
        db_obj: ModelType,
        obj_in: Union[UpdateSchemaType, Dict[str, Any]]
    ) -> ModelType:
        """
        Aplicar solo los campos enviados.

        Con un schema se usan los campos fijados explícitamente (exclude_unset);
        las claves que el modelo no tiene se ignoran.
        """
        changes = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)
        for field, value in changes.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def remove(self, db: Session, *, id: int) -> ModelType:
        """
        Raises:
            ValueError: Si el registro no existe
        """
        obj = self.get(db, id=id)
        if not obj:
            raise ValueError(f"{self.model.__name__} con ID {id} no encontrado")
        db.delete(obj)
        db.commit()
        return obj

    def exists(self, db: Session, id: int) -> bool:
        query = db.query(self.model.id).filter(self.model.id == id)
        return db.query(query.exists()).scalar()
