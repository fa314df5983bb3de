# tests/conftest.py

import pikepdf
import pytest

##########
# FIXTURES
##########


@pytest.fixture
def create_pdf():
    """Factory fixture to create a PDF with one page per content stream given.

    A page may also be given a list of byte strings, which become an array of
    separate content streams.
    """

    def _make(*pages_content):
        pdf = pikepdf.new()
        for content in pages_content:
            page = pdf.add_blank_page(page_size=(100, 100))
            if isinstance(content, list):
                page.Contents = pikepdf.Array([pdf.make_stream(c) for c in content])
            else:
                page.Contents = pdf.make_stream(content)
        return pdf

    return _make


@pytest.fixture
def make_form():
    """Factory fixture to create a Form XObject and attach it to a page as /Form1."""

    def _make(pdf, page, content: bytes, name: str = "/Form1"):
        xobj = pdf.make_stream(content)
        xobj.Type = pikepdf.Name("/XObject")
        xobj.Subtype = pikepdf.Name("/Form")
        xobj.BBox = [0, 0, 100, 100]
        page.Resources = pikepdf.Dictionary(
            XObject=pikepdf.Dictionary({name: xobj})
        )
        return xobj

    return _make


@pytest.fixture
def create_text_pdf():
    """Factory fixture for a one-page PDF that draws text in Helvetica."""

    def _make(content: bytes):
        pdf = pikepdf.new()
        page = pdf.add_blank_page(page_size=(400, 200))
        font = pikepdf.Dictionary(
            Type=pikepdf.Name.Font,
            Subtype=pikepdf.Name.Type1,
            BaseFont=pikepdf.Name.Helvetica,
        )
        page.Resources = pikepdf.Dictionary(Font=pikepdf.Dictionary(F1=font))
        page.Contents = pdf.make_stream(content)
        return pdf

    return _make


@pytest.fixture
def page_content():
    """Returns a function giving the concatenated, decoded content of a page."""

    def _read(page) -> bytes:
        contents = page.obj.get("/Contents")
        if contents is None:
            return b""
        if isinstance(contents, pikepdf.Array):
            return b"".join(s.read_bytes() for s in contents)
        return contents.read_bytes()

    return _read


@pytest.fixture
def make_form_chain():
    """Factory fixture for a chain of Form XObjects, each drawing the next as /F.

    The page draws the first form; the last one draws ``innermost`` instead.
    """

    def _make(pdf, page, length: int, innermost: bytes):
        forms = []
        for _ in range(length):
            form = pdf.make_stream(b"(public) Tj /F Do")
            form.Type = pikepdf.Name.XObject
            form.Subtype = pikepdf.Name.Form
            form.BBox = [0, 0, 10, 10]
            forms.append(form)
        forms[-1].write(innermost)
        for outer, inner in zip(forms, forms[1:]):
            outer.Resources = pikepdf.Dictionary(XObject=pikepdf.Dictionary(F=inner))
        page.Resources = pikepdf.Dictionary(XObject=pikepdf.Dictionary(F=forms[0]))
        return forms

    return _make
