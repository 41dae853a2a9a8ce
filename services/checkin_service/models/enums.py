"""Enums for the Check-in Service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class MemberStatus(str, enum.Enum):
    LEAD = "lead"
    ATIVO = "ativo"
    BLOQUEADO = "bloqueado"
    PAUSADO = "pausado"
    CANCELADO = "cancelado"


class AccessType(str, enum.Enum):
    SUBSCRIPTION = "subscription"
    CREDITS = "credits"
    DAILY_PASS = "daily_pass"


class CheckInType(str, enum.Enum):
    MEMBER = "member"
    GUEST = "guest"


class CheckInResult(str, enum.Enum):
    ALLOWED = "allowed"
    BLOCKED = "blocked"


class ReasonCode(str, enum.Enum):
    OK = "OK"
    STATUS_LEAD = "STATUS_LEAD"
    STATUS_BLOQUEADO = "STATUS_BLOQUEADO"
    STATUS_PAUSADO = "STATUS_PAUSADO"
    STATUS_CANCELADO = "STATUS_CANCELADO"
    NO_ACCESS_PLAN = "NO_ACCESS_PLAN"
    EXPIRED = "EXPIRED"
    NO_CREDITS = "NO_CREDITS"
    AREA_EXCLUSIVE = "AREA_EXCLUSIVE"
    RENTAL_NOT_SCHEDULED = "RENTAL_NOT_SCHEDULED"
    OUTSIDE_RENTAL_WINDOW = "OUTSIDE_RENTAL_WINDOW"
