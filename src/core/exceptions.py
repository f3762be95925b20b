"""
Exceptions du domaine.

Le moteur de scan signale ses erreurs ordinaires (source indisponible,
fichier compagnon illisible, correspondance ambigue) par des messages et
des valeurs de retour. Seules les erreurs qui empechent de poursuivre
sont levees.
"""

from typing import Optional


class RepositoryError(Exception):
    """
    Echec de persistance d'une entite.

    Attributs:
        entity_title: Titre de l'entite concernee, si connu
    """

    def __init__(self, message: str, entity_title: Optional[str] = None) -> None:
        self.entity_title = entity_title
        super().__init__(message)
