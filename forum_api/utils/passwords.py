from passlib.hash import bcrypt

from forum_api.config import BCRYPT_ROUNDS

_hasher = bcrypt.using(rounds=BCRYPT_ROUNDS)


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    return bcrypt.verify(password, hashed)
