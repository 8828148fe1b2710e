"""
Modèle Entreprise - Client (tenant) de l'application.

Toutes les données (utilisateurs, équipes, formations) sont rattachées
à une entreprise ; aucune donnée ne traverse la frontière entre entreprises.
"""

from typing import TYPE_CHECKING, List

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database.base_class import Base
from app.models.mixins import TimestampMixin

if TYPE_CHECKING:
    from app.models.equipe import Equipe
    from app.models.formation import Formation
    from app.models.utilisateur import Utilisateur


class Entreprise(TimestampMixin, Base):
    """
    Représente une entreprise cliente (BTP, échafaudage...).

    Attributes:
        id: Identifiant unique
        nom: Raison sociale
        adresse: Adresse du siège
        telephone: Téléphone du siège
        email: Email de contact
    """

    __tablename__ = "entreprises"
    __table_args__ = {
        "comment": "Entreprises clientes (tenants)"
    }

    id: Mapped[int] = mapped_column(
        primary_key=True,
        doc="Identifiant unique de l'entreprise",
        info={"description": "Clé primaire auto-incrémentée"}
    )

    nom: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        doc="Raison sociale",
        info={"description": "Nom de l'entreprise", "example": "BTP Construct"}
    )

    adresse: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        doc="Adresse du siège"
    )

    telephone: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
        doc="Téléphone du siège"
    )

    email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        doc="Email de contact",
        info={"format": "email", "example": "contact@btpconstruct.fr"}
    )

    # === Relations ===

    utilisateurs: Mapped[List["Utilisateur"]] = relationship(
        "Utilisateur",
        back_populates="entreprise",
        cascade="all, delete-orphan",
        doc="Salariés de l'entreprise"
    )

    equipes: Mapped[List["Equipe"]] = relationship(
        "Equipe",
        back_populates="entreprise",
        cascade="all, delete-orphan",
        doc="Équipes de l'entreprise"
    )

    formations: Mapped[List["Formation"]] = relationship(
        "Formation",
        back_populates="entreprise",
        doc="Formations des salariés de l'entreprise"
    )

    def __repr__(self) -> str:
        return f"<Entreprise(id={self.id}, nom='{self.nom}')>"
