"""
Clients for the collaborator services (pricing, inventory, payment and the
notification channel gateway).

Lifecycle services only see the narrow client interfaces; which
implementation they get is decided by integrations.registry.
"""
