from sqlalchemy.orm import DeclarativeBase, declared_attr


class Base(DeclarativeBase):
    """
    Base declarativa de todos los modelos.

    Los modelos del dominio fijan __tablename__ explícitamente; si no lo
    hacen se usa el nombre de la clase en minúsculas.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return cls.__name__.lower()
