from passlib.context import CryptContext

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto"
)

# bcrypt hard limit
MAX_BCRYPT_BYTES = 72


def hash_password(password: str) -> str:
    """Hash an account secret. bcrypt silently truncates past 72 bytes, so refuse."""
    if len(password.encode("utf-8")) > MAX_BCRYPT_BYTES:
        raise ValueError("Password too long (max 72 bytes)")
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """False for any mismatch, including missing or unreadable stored hashes."""
    if not hashed_password:
        return False
    if len(plain_password.encode("utf-8")) > MAX_BCRYPT_BYTES:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False
