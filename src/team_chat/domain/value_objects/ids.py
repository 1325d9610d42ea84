from __future__ import annotations

from typing import NewType

# External subject issued by the identity provider. The only user identifier
# allowed inside the messaging core.
UserRef = NewType("UserRef", str)

# Storage-assigned row id of a user. Never compared against a UserRef.
InternalUserId = NewType("InternalUserId", int)
