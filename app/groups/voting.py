"""
Règles de vote sur les activités proposées.

Le seuil est recalculé à chaque vote à partir du nombre de membres
courant du groupe : ajouter ou retirer un membre change le seuil de
toutes les propositions existantes.
"""
import math
from dataclasses import dataclass


def votes_needed(member_count: int) -> int:
    """
    Nombre de votes requis pour valider automatiquement une activité.

    Un groupe de deux exige l'unanimité ; sinon la majorité arrondie
    au supérieur.
    """
    if member_count == 2:
        return 2
    return math.ceil(member_count / 2)


@dataclass(frozen=True)
class VoteTally:
    votes: int
    votes_needed: int

    @property
    def reached(self) -> bool:
        return self.votes >= self.votes_needed


def tally(vote_count: int, member_count: int) -> VoteTally:
    return VoteTally(votes=vote_count, votes_needed=votes_needed(member_count))
