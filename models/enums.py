from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# PORTAL ROLE
# -----------------------------------------------------
class Role(BaseStrEnum):
    """Resolved from user_permissions; gates views and collections."""

    client = "client"
    employee = "employee"
    admin = "admin"
    super_admin = "super_admin"


# -----------------------------------------------------
# PROPERTY TYPE (market intelligence)
# -----------------------------------------------------
class PropertyType(BaseStrEnum):
    residential = "Residential"
    commercial = "Commercial"
    industrial = "Industrial"


# -----------------------------------------------------
# CHAT
# -----------------------------------------------------
class MessageRole(BaseStrEnum):
    user = "user"
    model = "model"


class ChatState(BaseStrEnum):
    idle = "idle"
    awaiting_response = "awaiting_response"
