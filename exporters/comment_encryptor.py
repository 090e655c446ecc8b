"""Public-key encryption of selected comment fields."""

import base64
import logging
from pathlib import Path
from typing import Union

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding

logger = logging.getLogger('wordpress_markdown_exporter.exporters.commentencryptor')


class CommentEncryptor:
    """
    Encrypts strings with an RSA public key (OAEP, SHA-1, MGF1).

    The ciphertext is returned base64 encoded so it can be stored in YAML.
    """

    def __init__(self, public_key_pem: bytes):
        self.public_key = serialization.load_pem_public_key(public_key_pem)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'CommentEncryptor':
        """Load a PEM encoded public key from ``path``."""
        with open(path, 'rb') as f:
            return cls(f.read())

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt ``plaintext``.

        Raises:
            ValueError: If the value is too long for the key size
        """
        ciphertext = self.public_key.encrypt(
            plaintext.encode('utf-8'),
            padding.OAEP(
                mgf=padding.MGF1(algorithm=hashes.SHA1()),
                algorithm=hashes.SHA1(),
                label=None
            )
        )
        return base64.b64encode(ciphertext).decode('ascii')


__all__ = ['CommentEncryptor']
