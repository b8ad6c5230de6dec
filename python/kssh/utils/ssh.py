"""
kssh/utils/ssh.py

SSH identity generation for replicas:
  - generate_ssh_keypair: one fresh RSA keypair (PEM private key, OpenSSH public key).
  - build_trust_set: the authorized_keys blob shared by every replica.

Keys are never cached or reused; every call draws new key material from the
OS random source via the cryptography library.
"""

from __future__ import annotations

import logging
from typing import Iterable

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from kssh.models.ssh import SSHKeypair

SSH_KEY_SIZE = 4096
RSA_PUBLIC_EXPONENT = 65537

logger = logging.getLogger(__name__)


class KeyGenerationError(RuntimeError):
    """Secure key generation or key serialization failed."""


def generate_ssh_keypair(key_size: int = SSH_KEY_SIZE) -> SSHKeypair:
    """
    Generate an RSA keypair for one replica.

    Args:
        key_size (int): Modulus size in bits. Defaults to 4096.

    Returns:
        SSHKeypair: private key as PEM ("RSA PRIVATE KEY"), public key as a single
        newline-terminated authorized-key line.

    Raises:
        KeyGenerationError: If the random source or key marshalling fails. No
            cluster state has been touched at this point.
    """
    try:
        private_key = rsa.generate_private_key(
            public_exponent=RSA_PUBLIC_EXPONENT,
            key_size=key_size,
        )
        private_pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        )
        public_line = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.OpenSSH,
            format=serialization.PublicFormat.OpenSSH,
        )
    except Exception as exc:
        raise KeyGenerationError(f"Failed to generate SSH keypair: {exc}") from exc

    logger.debug("Generated %d-bit RSA keypair.", key_size)
    return SSHKeypair(private_key=private_pem, public_key=public_line + b"\n")


def build_trust_set(keypairs: Iterable[SSHKeypair]) -> bytes:
    """
    Concatenate every public key, in generation order, into one authorized_keys blob.
    """
    return b"".join(kp.public_key for kp in keypairs)
