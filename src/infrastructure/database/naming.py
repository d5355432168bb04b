# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database naming for the global and per-site databases.

The global database is ``{prefix}global``; site ``n`` lives in
``{prefix}site{n}``. The mapping is a pure function of its inputs.
"""

from typing import Final, Literal, Union

GLOBAL_TENANT: Final = "global"
DEFAULT_PREFIX: Final = "nextcms_"

TenantScope = Union[int, Literal["global"]]


def database_name(tenant: TenantScope, prefix: str = DEFAULT_PREFIX) -> str:
    """Get the database name for a tenant scope.

    Args:
        tenant: GLOBAL_TENANT or a positive numeric site id.
        prefix: Prefix shared by every database name.

    Returns:
        Database name.

    Raises:
        ValueError: If the tenant is neither GLOBAL_TENANT nor a positive int.

    Example:
        >>> database_name(7)
        'nextcms_site7'
        >>> database_name(GLOBAL_TENANT)
        'nextcms_global'
    """
    if tenant == GLOBAL_TENANT:
        return f"{prefix}global"
    # bool is an int subclass; True must not become site1
    if isinstance(tenant, bool) or not isinstance(tenant, int) or tenant < 1:
        raise ValueError(f"Invalid site id: {tenant!r}")
    return f"{prefix}site{tenant}"
