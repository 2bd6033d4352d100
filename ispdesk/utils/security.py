# ispdesk/utils/security.py
"""
Encryption at rest for router API credentials.

The RouterOS API needs the clear password to log in, so credentials are
encrypted with Fernet (reversible) rather than hashed.
"""
import logging

from cryptography.fernet import Fernet, InvalidToken

from ..config import get_settings

logger = logging.getLogger(__name__)


def _build_cipher() -> Fernet | None:
    settings = get_settings()
    key = settings.encryption_key

    if not key:
        if settings.app_env == "production":
            raise RuntimeError(
                "FATAL: ENCRYPTION_KEY is not set. "
                "It is required in production to encrypt router credentials."
            )
        logger.warning("ENCRYPTION_KEY is not set. Router password encryption is DISABLED.")
        return None

    try:
        return Fernet(key.encode())
    except (ValueError, TypeError) as e:
        if settings.app_env == "production":
            raise RuntimeError(
                f"FATAL: invalid ENCRYPTION_KEY: {e}. "
                'Generate one with: python -c "from cryptography.fernet import Fernet; '
                'print(Fernet.generate_key().decode())"'
            )
        logger.error(f"Could not initialise Fernet with ENCRYPTION_KEY: {e}")
        return None


cipher_suite = _build_cipher()


def encrypt_data(data: str) -> str:
    """Encrypts a string. Returns it unchanged when encryption is disabled."""
    if not cipher_suite or not data:
        return data
    return cipher_suite.encrypt(data.encode()).decode()


def decrypt_data(token: str) -> str:
    """Decrypts a token (string)."""
    if not cipher_suite or not token:
        return token
    try:
        return cipher_suite.decrypt(token.encode()).decode()
    except InvalidToken:
        # Legacy rows stored before a key was configured
        logger.warning("Could not decrypt a token. Assuming legacy plain text.")
        return token
