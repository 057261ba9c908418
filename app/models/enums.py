"""Enumerations shared by records, ORM models and request schemas."""

import enum


class AuthProvider(str, enum.Enum):
    EMAIL = "email"
    GOOGLE = "google"


class Language(str, enum.Enum):
    EN = "en"
    AR = "ar"


class UiTheme(str, enum.Enum):
    LIGHT = "light"
    DARK = "dark"


class SubscriptionTier(str, enum.Enum):
    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class ProjectStatus(str, enum.Enum):
    DRAFT = "draft"
    GENERATING = "generating"
    COMPLETED = "completed"
    ERROR = "error"


class GenerationStatus(str, enum.Enum):
    """Status of a generation attempt. Completed and error are terminal."""

    PENDING = "pending"
    COMPLETED = "completed"
    ERROR = "error"


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
