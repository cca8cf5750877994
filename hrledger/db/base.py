"""
Declarative base shared by every ORM model.
"""

from sqlalchemy.orm import declarative_base


class _ModelBase:
    # Models annotate plain ``Column`` attributes instead of ``Mapped[]``.
    __allow_unmapped__ = True


Base = declarative_base(cls=_ModelBase)
