"""
Modèle Utilisateur - Salariés des entreprises clientes.

Un utilisateur appartient à une seule entreprise, peut être membre de
plusieurs équipes et responsable de plusieurs équipes.
"""

from typing import TYPE_CHECKING, List

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database.base_class import Base
from app.models.equipe import equipe_membres, equipe_responsables
from app.models.mixins import TimestampMixin

if TYPE_CHECKING:
    from app.models.entreprise import Entreprise
    from app.models.equipe import Equipe
    from app.models.formation import Formation


class Utilisateur(TimestampMixin, Base):
    """
    Représente un salarié (admin, représentant ou ouvrier).

    Attributes:
        id: Identifiant unique
        entreprise_id: Entreprise de rattachement
        email: Email de connexion (unique)
        nom / prenom: Identité
        role: admin, representant ou ouvrier
        telephone / adresse / num_securite_sociale: Données personnelles (restreintes)
        formations: Formations suivies
        equipes_membre: Équipes dont l'utilisateur est membre
        equipes_responsable: Équipes dont l'utilisateur est responsable
    """

    __tablename__ = "utilisateurs"
    __table_args__ = {
        "comment": "Salariés des entreprises clientes"
    }

    id: Mapped[int] = mapped_column(
        primary_key=True,
        doc="Identifiant unique de l'utilisateur",
        info={"description": "Clé primaire auto-incrémentée"}
    )

    entreprise_id: Mapped[int] = mapped_column(
        ForeignKey("entreprises.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Entreprise de rattachement",
        info={"description": "Tenant propriétaire"}
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        doc="Adresse email unique de connexion",
        info={"format": "email", "pii": True, "example": "j.dupont@btpconstruct.fr"}
    )

    nom: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Nom de famille",
        info={"pii": True, "example": "Dupont"}
    )

    prenom: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Prénom",
        info={"pii": True, "example": "Jean"}
    )

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="ouvrier",
        doc="Rôle applicatif",
        info={"enum": ["admin", "representant", "ouvrier"]}
    )

    telephone: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
        doc="Téléphone personnel",
        info={"pii": True, "restricted": True}
    )

    adresse: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        doc="Adresse personnelle",
        info={"pii": True, "restricted": True}
    )

    num_securite_sociale: Mapped[str | None] = mapped_column(
        String(15),
        nullable=True,
        doc="Numéro de sécurité sociale",
        info={"pii": True, "restricted": True, "example": "1234567890123"}
    )

    # === Relations ===

    entreprise: Mapped["Entreprise"] = relationship(
        "Entreprise",
        back_populates="utilisateurs",
        doc="Entreprise de rattachement"
    )

    formations: Mapped[List["Formation"]] = relationship(
        "Formation",
        back_populates="utilisateur",
        cascade="all, delete-orphan",
        order_by="Formation.id",
        doc="Formations suivies par l'utilisateur"
    )

    equipes_membre: Mapped[List["Equipe"]] = relationship(
        "Equipe",
        secondary=equipe_membres,
        back_populates="membres",
        order_by="Equipe.id",
        doc="Équipes dont l'utilisateur est membre"
    )

    equipes_responsable: Mapped[List["Equipe"]] = relationship(
        "Equipe",
        secondary=equipe_responsables,
        back_populates="responsables",
        order_by="Equipe.id",
        doc="Équipes dont l'utilisateur est responsable"
    )

    # === Propriétés ===

    @property
    def nom_complet(self) -> str:
        """Nom complet (Prénom Nom)."""
        return f"{self.prenom} {self.nom}"

    def __repr__(self) -> str:
        return f"<Utilisateur(id={self.id}, email='{self.email}', role='{self.role}')>"
