# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Provisioning domain for sites.

This package provides the SiteProvisioningService, which writes the site
directory record, bootstraps the site database and audits the creation.
"""

from src.domains.provisioning.activity import log_activity
from src.domains.provisioning.service import (
    ProvisionedSite,
    SiteConflictError,
    SiteInitializationError,
    SiteProvisioningError,
    SiteProvisioningService,
)

__all__ = [
    "ProvisionedSite",
    "SiteConflictError",
    "SiteInitializationError",
    "SiteProvisioningError",
    "SiteProvisioningService",
    "log_activity",
]
