"""
billing_services -- Package init and public API.

Responsibility:
    Orchestration over the pure engines.  This is the **only** layer that
    reads the wall clock (through an injected ``Clock``) or loads
    configuration.

Architecture position:
    Services -- orchestration over engines + kernel + config.

    Dependency direction (enforced by tests/architecture/test_layer_boundaries.py):
        billing_services/ -> billing_engines/, billing_config/, billing_kernel/  (allowed)
        billing_engines/  -> billing_services/, billing_config/                  (FORBIDDEN)
        billing_kernel/   -> any other billing package                         (FORBIDDEN)
"""

from billing_services.valuation_service import ValuationService

__all__ = ["ValuationService"]
