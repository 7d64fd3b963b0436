from __future__ import annotations

import enum


class UserAccountControl(enum.IntFlag):
    SCRIPT = 0x0001
    ACCOUNTDISABLE = 0x0002
    HOMEDIR_REQUIRED = 0x0008
    LOCKOUT = 0x0010
    PASSWD_NOTREQD = 0x0020
    PASSWD_CANT_CHANGE = 0x0040
    ENCRYPTED_TEXT_PWD_ALLOWED = 0x0080
    TEMP_DUPLICATE_ACCOUNT = 0x0100
    NORMAL_ACCOUNT = 0x0200
    INTERDOMAIN_TRUST_ACCOUNT = 0x0800
    WORKSTATION_TRUST_ACCOUNT = 0x1000
    SERVER_TRUST_ACCOUNT = 0x2000
    DONT_EXPIRE_PASSWORD = 0x10000
    MNS_LOGON_ACCOUNT = 0x20000
    SMARTCARD_REQUIRED = 0x40000
    TRUSTED_FOR_DELEGATION = 0x80000
    NOT_DELEGATED = 0x100000
    USE_DES_KEY_ONLY = 0x200000
    DONT_REQ_PREAUTH = 0x400000
    PASSWORD_EXPIRED = 0x800000
    TRUSTED_TO_AUTH_FOR_DELEGATION = 0x1000000
    PARTIAL_SECRETS_ACCOUNT = 0x04000000


class GroupType(enum.IntFlag):
    GLOBAL = 0x00000002
    DOMAIN_LOCAL = 0x00000004
    UNIVERSAL = 0x00000008
    SECURITY = 0x80000000


GROUP_TYPE_NAMES = {
    "Global": GroupType.GLOBAL,
    "DomainLocal": GroupType.DOMAIN_LOCAL,
    "Universal": GroupType.UNIVERSAL,
}


def user_account_control_contains(value: int | str | None, flag: UserAccountControl) -> bool:
    try:
        n = int(value or 0)
    except (TypeError, ValueError):
        return False
    return bool(n & int(flag))


def to_signed32(n: int) -> int:
    """groupType is stored as a signed 32-bit integer."""
    n &= 0xFFFFFFFF
    return n - 0x100000000 if n & 0x80000000 else n


def group_type_name(value: int | str | None) -> str:
    try:
        n = int(value or 0) & 0xFFFFFFFF
    except (TypeError, ValueError):
        return ""
    for name, flag in GROUP_TYPE_NAMES.items():
        if n & int(flag):
            return name
    return ""
