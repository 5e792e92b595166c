from django.conf import settings
from django.http import FileResponse
from ninja import File, Form, Query, UploadedFile
from ninja_extra import api_controller, route
from ninja_jwt.authentication import JWTAuth

from src.api.pagination import Paginator
from src.core.apis import BaseAPIController
from src.core.exceptions import InvalidInputError
from src.documents import selectors, services
from src.documents.analysis import analyze_document
from src.documents.crypto.hashing import compute_fingerprint
from src.documents.pdf import extract_pdf_metadata
from src.documents.policies import can_access_record
from src.documents.presenters import record_to_dto, record_to_list_item, verification_to_dto
from src.documents.schemas import (
    DiagnoseSignaturePayload,
    DocumentFilterParams,
    RevokePayload,
    SignMetaPayload,
    VerifyQueryParams,
)


def _read_upload(file: UploadedFile) -> bytes:
    if file is None:
        raise InvalidInputError(message="No file provided", code="FILE_REQUIRED")
    # one byte past the limit is enough to reject
    data = file.read(settings.FILE_MAX_SIZE + 1)
    services.ensure_upload_size(data)
    return data


@api_controller("/documents", tags=["Documents"], auth=JWTAuth())
class DocumentsController(BaseAPIController):
    @route.post("/sign")
    def sign(self, file: File[UploadedFile], payload: Form[SignMetaPayload]):
        record = services.document_sign(
            user=self.context.request.auth,
            file_name=file.name,
            data=_read_upload(file),
            fingerprint=payload.fingerprint,
            signature=payload.signature,
            public_key=payload.public_key,
            algorithm=payload.algorithm,
            notes=payload.notes,
            tags=payload.tags,
            subject=payload.subject,
            qr_position=payload.qr_position,
            request=self.context.request,
        )
        return self.create_response(
            message="Document signed successfully",
            data={
                "document": record_to_dto(record),
                "certificate_id": record.certificate_id,
                "verify_url": services.build_verify_url(record.certificate_id),
            },
            status_code=201,
        )

    @route.get("/check")
    def check(self, fingerprint: str):
        data = services.document_check(fingerprint=fingerprint, requester=self.context.request.auth)
        return self.create_response(
            message="Document already signed" if data["exists"] else "Document not signed yet",
            data=data,
        )

    @route.post("/verify", auth=None)
    def verify_upload(self, file: File[UploadedFile]):
        data = _read_upload(file)
        fingerprint, result = services.verify_uploaded_document(data)
        payload = verification_to_dto(result, fingerprint=fingerprint)
        payload["uploaded_pdf_info"] = extract_pdf_metadata(data)
        return self.create_response(
            message="Document verification successful" if result.valid else "Document could not be verified",
            data=payload,
        )

    @route.get("/verify", auth=None)
    def verify_lookup(self, params: Query[VerifyQueryParams]):
        if params.certificate_id:
            result = services.verify_certificate(params.certificate_id)
        elif params.fingerprint:
            result = services.verify_document(params.fingerprint)
        else:
            raise InvalidInputError(
                message="Either certificate_id or fingerprint must be provided",
                code="IDENTIFIER_REQUIRED",
            )
        return self.create_response(
            message="Document verification successful" if result.valid else "Document could not be verified",
            data=verification_to_dto(result, include_crypto=True),
        )

    @route.get("/certificates/{certificate_id}", auth=None)
    def certificate(self, certificate_id: str):
        """Landing lookup behind the QR code printed on signed copies."""
        record = selectors.document_get_by_certificate_id(certificate_id)
        result = services.verify_record(record)
        return self.create_response(
            message="Certificate found",
            data=verification_to_dto(result, include_crypto=True),
        )

    @route.get("/")
    def list_documents(self, filters: Query[DocumentFilterParams]):
        qs = selectors.document_list_for_identity(
            requester=self.context.request.auth,
            owner_id=filters.owner_id,
            document_type=filters.document_type,
            revoked=filters.revoked,
            q=filters.q,
        )
        items, meta = Paginator(default_page_size=10, max_page_size=100).paginate_queryset(qs, self.context.request)
        return self.create_response(
            message="Documents fetched",
            data={"items": [record_to_list_item(r) for r in items], "pagination": meta},
        )

    @route.get("/stats")
    def stats(self):
        return self.create_response(
            message="Documents statistics",
            data=selectors.documents_stats_for_identity(requester=self.context.request.auth),
        )

    @route.post("/diagnose-signature")
    def diagnose_signature(self, payload: DiagnoseSignaturePayload):
        report = services.document_diagnose_signature(
            user=self.context.request.auth,
            signature=payload.signature,
            fingerprint=payload.fingerprint,
            public_key=payload.public_key,
            timestamps=payload.timestamps,
        )
        return self.create_response(
            message="Matching format found" if report.match else "No matching format found",
            data=report.to_dict(),
        )

    @route.post("/fingerprint", auth=None)
    def fingerprint(self, file: File[UploadedFile]):
        data = _read_upload(file)
        return self.create_response(
            message="Fingerprint computed",
            data={"fingerprint": compute_fingerprint(data), "algorithm": "sha256", "size": len(data)},
        )

    @route.post("/analyze")
    def analyze(self, file: File[UploadedFile]):
        data = _read_upload(file)
        metadata = extract_pdf_metadata(data)
        return self.create_response(
            message="Document analyzed",
            data={"analysis": analyze_document(file.name, metadata), "pdf_metadata": metadata},
        )

    @route.get("/{certificate_id}")
    def detail(self, certificate_id: str):
        user = self.context.request.auth
        record = selectors.document_get_by_certificate_id(certificate_id)
        return self.create_response(
            message="Document fetched",
            data=record_to_dto(record, include_crypto=can_access_record(user, record)),
        )

    @route.get("/{certificate_id}/download")
    def download(self, certificate_id: str):
        record = services.document_get_for_download(
            certificate_id=certificate_id,
            requester=self.context.request.auth,
            request=self.context.request,
        )
        return FileResponse(
            services.document_open_signed_file(record),
            as_attachment=True,
            filename=f"signed_{record.file_name}",
            content_type="application/pdf",
        )

    @route.post("/{certificate_id}/revoke")
    def revoke(self, certificate_id: str, payload: RevokePayload):
        record = services.document_revoke(
            certificate_id=certificate_id,
            actor=self.context.request.auth,
            reason=payload.reason,
            request=self.context.request,
        )
        return self.create_response(message="Certificate revoked", data=record_to_dto(record))
