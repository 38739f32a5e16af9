"""
Licenses module - Signed license issuance and verification.

This module handles:
- License entity and domain logic
- ES256 signing key material and the license token codec
- License lifecycle (issue, validate, status, renew, revoke, transfer)
"""
