"""
Modèle Equipe - Équipes de chantier.

Ce module définit :
- equipe_membres : Association Equipe ↔ Utilisateur (membres)
- equipe_responsables : Association Equipe ↔ Utilisateur (responsables)
- Equipe : l'équipe elle-même
"""

from typing import TYPE_CHECKING, List

from sqlalchemy import Boolean, Column, ForeignKey, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database.base_class import Base
from app.models.mixins import TimestampMixin

if TYPE_CHECKING:
    from app.models.entreprise import Entreprise
    from app.models.utilisateur import Utilisateur


# =============================================================================
# TABLES DE JONCTION
# =============================================================================

equipe_membres = Table(
    "equipe_membres",
    Base.metadata,
    Column("equipe_id", ForeignKey("equipes.id", ondelete="CASCADE"), primary_key=True),
    Column("utilisateur_id", ForeignKey("utilisateurs.id", ondelete="CASCADE"), primary_key=True),
    comment="Table de jonction Equipe ↔ Utilisateur (membres)",
)

equipe_responsables = Table(
    "equipe_responsables",
    Base.metadata,
    Column("equipe_id", ForeignKey("equipes.id", ondelete="CASCADE"), primary_key=True),
    Column("utilisateur_id", ForeignKey("utilisateurs.id", ondelete="CASCADE"), primary_key=True),
    comment="Table de jonction Equipe ↔ Utilisateur (responsables)",
)


# =============================================================================
# ÉQUIPE
# =============================================================================

class Equipe(TimestampMixin, Base):
    """
    Représente une équipe de chantier.

    Une équipe a des membres (ouvriers) et un ou plusieurs responsables.
    Un même utilisateur peut appartenir à plusieurs équipes.

    Attributes:
        id: Identifiant unique
        entreprise_id: Entreprise propriétaire
        nom: Nom de l'équipe
        code: Code court (ex: EQMN2023)
        adresse: Adresse du chantier
        actif: Équipe active (les équipes inactives ne sont pas listées)
    """

    __tablename__ = "equipes"
    __table_args__ = {
        "comment": "Équipes de chantier"
    }

    id: Mapped[int] = mapped_column(
        primary_key=True,
        doc="Identifiant unique de l'équipe"
    )

    entreprise_id: Mapped[int] = mapped_column(
        ForeignKey("entreprises.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Entreprise propriétaire",
        info={"description": "Tenant propriétaire"}
    )

    nom: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
        doc="Nom de l'équipe",
        info={"example": "Équipe Montage Nord"}
    )

    code: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        doc="Code court de l'équipe",
        info={"example": "EQMN2023"}
    )

    adresse: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        doc="Adresse du chantier"
    )

    actif: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        doc="Équipe active"
    )

    # === Relations ===

    entreprise: Mapped["Entreprise"] = relationship(
        "Entreprise",
        back_populates="equipes",
        doc="Entreprise propriétaire"
    )

    membres: Mapped[List["Utilisateur"]] = relationship(
        "Utilisateur",
        secondary=equipe_membres,
        back_populates="equipes_membre",
        doc="Membres de l'équipe"
    )

    responsables: Mapped[List["Utilisateur"]] = relationship(
        "Utilisateur",
        secondary=equipe_responsables,
        back_populates="equipes_responsable",
        doc="Responsables de l'équipe"
    )

    def __repr__(self) -> str:
        return f"<Equipe(id={self.id}, nom='{self.nom}')>"
