import fitz  # PyMuPDF
import pytest

from src.documents.pdf import QR_POSITIONS, stamp_qr_code

CERTIFICATE_ID = "CERT-MVFC08KF-OEM28IS6"


@pytest.mark.parametrize("position", QR_POSITIONS)
def test_certificate_caption_stays_on_the_page(make_pdf, position):
    stamped = stamp_qr_code(
        make_pdf(),
        certificate_id=CERTIFICATE_ID,
        verify_url=f"https://notario.test/verify/{CERTIFICATE_ID}",
        position=position,
    )

    with fitz.open(stream=stamped, filetype="pdf") as doc:
        page = doc[-1]
        assert f"Certificate ID: {CERTIFICATE_ID}" in page.get_text()
        hits = page.search_for(CERTIFICATE_ID)
        assert hits
        assert all(0 <= hit.x0 and hit.x1 <= page.rect.width for hit in hits)


def test_stamp_lands_on_the_last_page(make_pdf):
    stamped = stamp_qr_code(
        make_pdf(pages=3),
        certificate_id=CERTIFICATE_ID,
        verify_url=f"https://notario.test/verify/{CERTIFICATE_ID}",
    )

    with fitz.open(stream=stamped, filetype="pdf") as doc:
        assert not doc[0].get_images()
        assert doc[-1].get_images()


def test_unreadable_input_raises():
    with pytest.raises((RuntimeError, ValueError)):
        stamp_qr_code(b"not a pdf", certificate_id=CERTIFICATE_ID, verify_url="https://notario.test/verify/x")
