"""
kssh/models/ssh.py

Pydantic models for the SSH identity material handed to each replica.
"""

from __future__ import annotations

from pydantic import BaseModel, field_validator


class SSHKeypair(BaseModel):
    """
    One replica's SSH identity.

    Attributes:
        private_key: PEM-encoded RSA private key (PKCS#1 container).
        public_key:  A single OpenSSH authorized-key line, newline-terminated.
    """

    private_key: bytes
    public_key: bytes

    class Config:
        frozen = True

    @field_validator("private_key")
    @classmethod
    def validate_private_key(cls, val: bytes) -> bytes:
        if not val.strip().startswith(b"-----BEGIN "):
            raise ValueError("private_key must be PEM-encoded")
        return val

    @field_validator("public_key")
    @classmethod
    def validate_public_key(cls, val: bytes) -> bytes:
        if not val.endswith(b"\n") or val.count(b"\n") != 1:
            raise ValueError("public_key must be exactly one newline-terminated line")
        return val
