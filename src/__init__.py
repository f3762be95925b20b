"""
CineScan - Scan des sources de donnees d'une videotheque personnelle.

Ce package parcourt les dossiers de films et de series, classe les fichiers
trouves, lit les fichiers compagnons (NFO, VSMETA) et reconcilie le
resultat avec la bibliotheque enregistree.

Architecture : Hexagonale (Ports et Adaptateurs)
- core/ : Couche domaine (entités, ports, objets valeur)
- services/ : Couche application (scan, reconciliation)
- adapters/ : Couche infrastructure (CLI, fichiers compagnons, cache)
- infrastructure/ : Persistance SQLite
"""
