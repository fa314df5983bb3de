#!/usr/bin/env python
"""Strip a text watermark from every page of a PDF file.

Watermarks are usually drawn inside their own ``q ... Q`` block (to
isolate the rotation and transparency they set up), so removing the
graphics state block that contains the watermark text takes the whole
watermark with it, while the rest of the page is untouched.

"""

import logging
import sys

import pikepdf

import pdfexcise

WATERMARK = r"CONFIDENTIAL|DRAFT"


def main():
    if len(sys.argv) < 3:
        print(f"Usage: {sys.argv[0]} input.pdf output.pdf [<watermark_regex>]")
        sys.exit(1)

    pattern = sys.argv[3] if len(sys.argv) > 3 else WATERMARK
    logging.basicConfig(level=logging.INFO)

    options = pdfexcise.RedactionOptions(scope=pdfexcise.Scope.GRAPHICS_STATE)
    with pikepdf.open(sys.argv[1]) as pdf:
        pdfexcise.redact(pdf, pattern, options)
        pdf.save(sys.argv[2])


if __name__ == "__main__":
    main()
