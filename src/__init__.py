"""Next CMS data-access core.

Multi-site content platform backend: one global database for accounts
and the site directory, one database per site for its content.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
