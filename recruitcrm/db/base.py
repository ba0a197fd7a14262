from sqlalchemy.orm import declarative_base

Base = declarative_base()


def as_dict(row) -> dict:
    """Column name -> value mapping for an ORM row."""
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}
