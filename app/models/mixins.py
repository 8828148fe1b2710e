"""
Mixins réutilisables pour les modèles SQLAlchemy.
"""

from datetime import datetime, timezone

from sqlalchemy.orm import Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    """
    Mixin ajoutant les colonnes created_at et updated_at.

    - created_at : auto-rempli à la création
    - updated_at : auto-mis à jour à chaque modification

    Usage:
        class MyModel(TimestampMixin, Base):
            __tablename__ = "my_table"
            id: Mapped[int] = mapped_column(primary_key=True)
    """

    created_at: Mapped[datetime] = mapped_column(
        default=utcnow,
        doc="Date et heure de création",
        info={"description": "Timestamp de création", "auto_generated": True}
    )

    updated_at: Mapped[datetime | None] = mapped_column(
        default=None,
        onupdate=utcnow,
        doc="Date et heure de dernière modification",
        info={"description": "Timestamp de mise à jour", "auto_generated": True}
    )
