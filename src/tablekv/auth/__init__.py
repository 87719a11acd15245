# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication helpers.

This package provides:
- Salted SHA-256 password hashing/verification
- The single administrative identity, persisted in the key-value store
- Self-issued HMAC-SHA256 bearer tokens
"""
