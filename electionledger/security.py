from passlib.context import CryptContext

# Replicas must agree on every written byte, so the digest is unsalted and deterministic:
# a fixed-length SHA-256 hex string.
pwd_context = CryptContext(schemes=["hex_sha256"])


# Hash a password
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


# Verify a plain password against a stored digest
def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)
