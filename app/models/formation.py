"""
Modèle Formation - Habilitations et certifications des salariés.

Le statut (Valide / À renouveler / Expirée) n'est jamais stocké : il est
recalculé à partir de date_expiration par app.services.formation.status.
"""

from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database.base_class import Base
from app.models.mixins import TimestampMixin

if TYPE_CHECKING:
    from app.models.entreprise import Entreprise
    from app.models.utilisateur import Utilisateur


class Formation(TimestampMixin, Base):
    """
    Formation suivie par un salarié.

    Attributes:
        id: Identifiant unique
        utilisateur_id: Titulaire
        entreprise_id: Entreprise du titulaire
        nom: Intitulé
        type_formation: Catégorie (ex: "Sécurité en hauteur")
        date_delivrance: Date d'obtention
        date_expiration: Date d'expiration (None = n'expire jamais)
        validite: Durée de validité en mois (information)
        obligatoire: Compte dans le taux de conformité
    """

    __tablename__ = "formations"
    __table_args__ = {
        "comment": "Formations et habilitations des salariés"
    }

    id: Mapped[int] = mapped_column(
        primary_key=True,
        doc="Identifiant unique de la formation"
    )

    utilisateur_id: Mapped[int] = mapped_column(
        ForeignKey("utilisateurs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Titulaire de la formation"
    )

    entreprise_id: Mapped[int] = mapped_column(
        ForeignKey("entreprises.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Entreprise du titulaire",
        info={"description": "Tenant propriétaire"}
    )

    nom: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        doc="Intitulé de la formation",
        info={"example": "Formation sécurité travaux en hauteur"}
    )

    type_formation: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        doc="Catégorie de formation",
        info={"example": "Sécurité en hauteur"}
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        doc="Description libre"
    )

    date_delivrance: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
        doc="Date d'obtention"
    )

    date_expiration: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
        index=True,
        doc="Date d'expiration (None = n'expire jamais)"
    )

    validite: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        doc="Durée de validité en mois"
    )

    obligatoire: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        doc="Formation obligatoire (compte dans le taux de conformité)"
    )

    # === Relations ===

    utilisateur: Mapped["Utilisateur"] = relationship(
        "Utilisateur",
        back_populates="formations",
        doc="Titulaire"
    )

    entreprise: Mapped["Entreprise"] = relationship(
        "Entreprise",
        back_populates="formations",
        doc="Entreprise du titulaire"
    )

    def __repr__(self) -> str:
        return f"<Formation(id={self.id}, nom='{self.nom}', expiration={self.date_expiration})>"
