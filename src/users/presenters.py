def user_to_profile_dto(u) -> dict:
    return {
        "id": str(u.id),
        "email": u.email,
        "name": u.name,
        "institution": u.institution or None,
        "role": u.role,
        "algorithm": u.algorithm,
        "public_key": u.public_key or None,
        "key_updated_at": u.key_updated_at.isoformat() if u.key_updated_at else None,
        "email_verified": u.email_verified_at is not None,
        "created_at": u.created_at.isoformat() if getattr(u, "created_at", None) else None,
    }


def key_pair_to_dto(pair) -> dict:
    # The private key leaves the server exactly once, in this response
    return {
        "algorithm": pair.algorithm,
        "public_key": pair.public_key,
        "private_key": pair.private_key,
    }
