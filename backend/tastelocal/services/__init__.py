# FILE: backend/tastelocal/services/__init__.py
# TASTELOCAL - SERVICE REGISTRY

from . import (
    aggregate_transforms,
    business_store,
    discovery_service,
    document_store,
    notification_index,
    sanitizer,
    user_profile_service,
)
