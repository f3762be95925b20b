"""
Couche application (cas d'utilisation).

Les services orchestrent la logique du domaine : ils dependent des ports
definis dans core/, jamais des implementations concretes des adapters/.

- scanning/ : Scan des sources de donnees et reconciliation avec la bibliotheque
"""
