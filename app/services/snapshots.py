"""
Instantanés en lecture seule consommés par le moteur de conformité.

Les routes chargent les enregistrements via SQLAlchemy puis les convertissent
en dataclasses figées : le classificateur, les agrégations et le contrôle
d'accès ne manipulent jamais d'objets ORM.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, FrozenSet, Optional, Tuple

if TYPE_CHECKING:
    from app.models.equipe import Equipe
    from app.models.formation import Formation
    from app.models.utilisateur import Utilisateur


@dataclass(frozen=True)
class FormationSnapshot:
    """
    Formation telle que vue par le moteur.

    Attributes:
        date_expiration: None = n'expire jamais (toujours Valide)
        obligatoire: Compte dans le taux de conformité
    """
    date_expiration: Optional[date] = None
    obligatoire: bool = False
    id: Optional[int] = None
    nom: str = ""
    type_formation: Optional[str] = None
    date_delivrance: Optional[date] = None
    utilisateur_id: Optional[int] = None
    entreprise_id: Optional[int] = None


@dataclass(frozen=True)
class EquipeRef:
    """Référence légère vers une équipe (id + nom)."""
    id: int
    nom: str


@dataclass(frozen=True)
class UtilisateurSnapshot:
    """Utilisateur avec ses formations et ses rattachements d'équipes."""
    id: int
    entreprise_id: int
    nom: str
    prenom: str
    email: str
    role: str
    telephone: Optional[str] = None
    adresse: Optional[str] = None
    num_securite_sociale: Optional[str] = None
    formations: Tuple[FormationSnapshot, ...] = ()
    equipes_membre: Tuple[EquipeRef, ...] = ()
    equipes_responsable: Tuple[EquipeRef, ...] = ()

    @property
    def equipes_membre_ids(self) -> FrozenSet[int]:
        return frozenset(e.id for e in self.equipes_membre)

    @property
    def equipes_responsable_ids(self) -> FrozenSet[int]:
        return frozenset(e.id for e in self.equipes_responsable)

    @property
    def nom_complet(self) -> str:
        return f"{self.prenom} {self.nom}"


@dataclass(frozen=True)
class EquipeSnapshot:
    """Équipe avec ses membres et ses responsables."""
    id: int
    entreprise_id: int
    nom: str
    code: Optional[str] = None
    actif: bool = True
    membres: Tuple[UtilisateurSnapshot, ...] = ()
    responsables: Tuple[UtilisateurSnapshot, ...] = ()

    @property
    def membre_ids(self) -> FrozenSet[int]:
        return frozenset(m.id for m in self.membres)

    @property
    def responsable_ids(self) -> FrozenSet[int]:
        return frozenset(r.id for r in self.responsables)


@dataclass(frozen=True)
class EntrepriseRef:
    """Entreprise dans laquelle un enregistrement va être créé."""
    entreprise_id: int


@dataclass(frozen=True)
class CallerIdentity:
    """
    Identité de l'appelant, fournie par la couche d'authentification.

    Un champ manquant (None) est traité comme "non authentifié".
    """
    user_id: Optional[int]
    role: Optional[str]
    entreprise_id: Optional[int]
    equipes_responsable_ids: FrozenSet[int] = field(default_factory=frozenset)
    equipes_membre_ids: FrozenSet[int] = field(default_factory=frozenset)


# =============================================================================
# CONVERSION DEPUIS LES MODÈLES SQLALCHEMY
# =============================================================================

def formation_snapshot(formation: "Formation") -> FormationSnapshot:
    return FormationSnapshot(
        id=formation.id,
        nom=formation.nom,
        type_formation=formation.type_formation,
        date_delivrance=formation.date_delivrance,
        date_expiration=formation.date_expiration,
        obligatoire=bool(formation.obligatoire),
        utilisateur_id=formation.utilisateur_id,
        entreprise_id=formation.entreprise_id,
    )


def utilisateur_snapshot(utilisateur: "Utilisateur", with_formations: bool = True) -> UtilisateurSnapshot:
    """Convertit un Utilisateur ORM (formations et équipes incluses)."""
    formations = tuple(formation_snapshot(f) for f in utilisateur.formations) if with_formations else ()
    return UtilisateurSnapshot(
        id=utilisateur.id,
        entreprise_id=utilisateur.entreprise_id,
        nom=utilisateur.nom,
        prenom=utilisateur.prenom,
        email=utilisateur.email,
        role=utilisateur.role,
        telephone=utilisateur.telephone,
        adresse=utilisateur.adresse,
        num_securite_sociale=utilisateur.num_securite_sociale,
        formations=formations,
        equipes_membre=tuple(EquipeRef(id=e.id, nom=e.nom) for e in utilisateur.equipes_membre),
        equipes_responsable=tuple(EquipeRef(id=e.id, nom=e.nom) for e in utilisateur.equipes_responsable),
    )


def equipe_snapshot(equipe: "Equipe") -> EquipeSnapshot:
    """Convertit une Equipe ORM, membres triés par nom."""
    membres = sorted(equipe.membres, key=lambda u: (u.nom, u.prenom))
    return EquipeSnapshot(
        id=equipe.id,
        entreprise_id=equipe.entreprise_id,
        nom=equipe.nom,
        code=equipe.code,
        actif=bool(equipe.actif),
        membres=tuple(utilisateur_snapshot(m) for m in membres),
        responsables=tuple(utilisateur_snapshot(r, with_formations=False) for r in equipe.responsables),
    )


def caller_identity(utilisateur: Optional["Utilisateur"]) -> Optional[CallerIdentity]:
    """Construit l'identité de l'appelant (None si non authentifié)."""
    if utilisateur is None:
        return None
    return CallerIdentity(
        user_id=utilisateur.id,
        role=utilisateur.role,
        entreprise_id=utilisateur.entreprise_id,
        equipes_responsable_ids=frozenset(e.id for e in utilisateur.equipes_responsable),
        equipes_membre_ids=frozenset(e.id for e in utilisateur.equipes_membre),
    )
