def signer_to_dto(owner) -> dict | None:
    if owner is None:
        return None
    return {
        "id": str(owner.id),
        "name": owner.name,
        "email": owner.email,
        "institution": owner.institution or None,
    }


def record_to_dto(r, *, include_crypto: bool = False) -> dict:
    data = {
        "id": str(r.id),
        "certificate_id": r.certificate_id,
        "file_name": r.file_name,
        "fingerprint": r.fingerprint,
        "signed_fingerprint": r.signed_fingerprint or None,
        "algorithm": r.algorithm,
        "message_encoding": r.message_encoding,
        "issued_at": r.issued_at.isoformat() if r.issued_at else None,
        "document_type": r.document_type,
        "document_number": r.document_number,
        "folder_path": r.folder_path,
        "signed_file_url": r.signed_file_url or None,
        "revoked": r.revoked,
        "revoked_at": r.revoked_at.isoformat() if r.revoked_at else None,
        "revocation_reason": r.revocation_reason or None,
        "signer": signer_to_dto(getattr(r, "owner", None)),
        "metadata": r.metadata or {},
    }
    if include_crypto:
        data["signature"] = r.signature
        data["public_key"] = r.public_key
    return data


def record_to_list_item(r) -> dict:
    return {
        "id": str(r.id),
        "certificate_id": r.certificate_id,
        "file_name": r.file_name,
        "fingerprint": r.fingerprint,
        "document_type": r.document_type,
        "document_number": r.document_number,
        "issued_at": r.issued_at.isoformat() if r.issued_at else None,
        "revoked": r.revoked,
    }


def verification_to_dto(result, *, fingerprint: str | None = None, include_crypto: bool = False) -> dict:
    data = result.to_dict()
    if fingerprint is not None:
        data["fingerprint"] = fingerprint
    data["document"] = record_to_dto(result.record, include_crypto=include_crypto) if result.record else None
    return data
