# Import models here so Alembic can discover metadata.
from fieldops.models.organization import Organization  # noqa: F401
from fieldops.models.profile import Profile  # noqa: F401
from fieldops.models.org_membership import OrgMembership  # noqa: F401

# Feature gating
from fieldops.models.org_feature import OrgFeature  # noqa: F401
from fieldops.models.user_preference import UserPreference  # noqa: F401

# Quota resources (count-only tables)
from fieldops.models import usage  # noqa: F401
