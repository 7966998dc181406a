# -------------------------
# Enums
# -------------------------
from .enums import (
    Role,
    PropertyType,
    MessageRole,
    ChatState,
)

# -------------------------
# Site Configuration
# -------------------------
from .site_config import (
    HeroConfig,
    SeoConfig,
    ThemeConfig,
    SocialLinks,
    ContactInfo,
    SiteFeatures,
    SiteStats,
    SiteConfig,
)

# -------------------------
# Portal Records
# -------------------------
from .records import (
    UserPermission,
    RoleUpdate,
    ExternalApp,
    ExternalAppCreate,
    PropertyRecord,
    PropertyRecordCreate,
    WorkLogEntry,
    WorkLogCreate,
    DecodeResult,
    decode_documents,
)

# -------------------------
# AI Assistant
# -------------------------
from .chat import (
    GroundingSource,
    GroundingChunk,
    ChatMessage,
    SendMessageRequest,
)

__all__ = [
    # enums
    "Role",
    "PropertyType",
    "MessageRole",
    "ChatState",

    # site config
    "HeroConfig",
    "SeoConfig",
    "ThemeConfig",
    "SocialLinks",
    "ContactInfo",
    "SiteFeatures",
    "SiteStats",
    "SiteConfig",

    # records
    "UserPermission",
    "RoleUpdate",
    "ExternalApp",
    "ExternalAppCreate",
    "PropertyRecord",
    "PropertyRecordCreate",
    "WorkLogEntry",
    "WorkLogCreate",
    "DecodeResult",
    "decode_documents",

    # chat
    "GroundingSource",
    "GroundingChunk",
    "ChatMessage",
    "SendMessageRequest",
]
