# src/pdfexcise/api.py
"""
Public API: redact pages, documents and files.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, List, Optional, Set, Tuple, Union

import pikepdf

from .scope import Scope
from .scope_filter import PatternLike, ScopeFilter, ScopeTokenFilter, compile_pattern

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


@dataclass
class RedactionOptions:
    """Configuration options for the redaction process."""

    scope: Scope = Scope.MATCH
    """The unit removed around each match. Defaults to
    :attr:`Scope.MATCH`, which removes only the matched text.

    """

    recurse_xobjects: bool = True
    """If True, recursively descends into Form XObjects found in the page
    resources. A match inside a form at :attr:`Scope.PAGE` drops the page
    that uses it. Defaults to True.

    """

    visited_streams: Set[Tuple[int, int]] = field(default_factory=set)
    """Internal set used to prevent infinite recursion in malformed
    PDFs with cyclic XObject references. Reset for every page.

    """


def redact_page(
    pdf: pikepdf.Pdf,
    page: pikepdf.Page,
    pattern: PatternLike,
    options: Optional[RedactionOptions] = None,
) -> bool:
    """Redacts a PDF page and (optionally) its Form XObjects in-place.

    Each content stream is run through its own
    :class:`~pdfexcise.scope_filter.ScopeFilter`. Below
    :attr:`Scope.STREAM` the filtered content replaces the stream; at
    :attr:`Scope.STREAM` matching streams are dropped from the page.

    Args:
        pdf: The owning :class:`pikepdf.Pdf` document.
        page: The :class:`pikepdf.Page` to redact.
        pattern: Regular expression, as text or compiled.
        options: Configuration options. If ``None``, defaults are used.

    Returns:
        bool: True if the page matched at :attr:`Scope.PAGE` and must be
        removed by the caller. The page is left partly processed in that case.
    """
    if options is None:
        options = RedactionOptions()
    pattern = compile_pattern(pattern)

    # forms shared between pages must be judged again for every page
    options.visited_streams.clear()

    # qpdf only tokenizes content through a page helper, and only treats
    # dictionaries owned by a document as pages, so the holder is indirect.
    # One holder serves every stream of this page and its forms.
    holder = pikepdf.Page(
        pdf.make_indirect(pikepdf.Dictionary(Type=pikepdf.Name.Page))
    )

    if _redact_content_container(holder, page, pattern, options):
        return True

    if options.recurse_xobjects:
        return _process_child_resources(
            holder, _get_resources(page.obj), pattern, options
        )
    return False


def _process_child_resources(
    holder: pikepdf.Page,
    resources: Any,
    pattern: PatternLike,
    options: RedactionOptions,
) -> bool:
    """Finds and redacts the Form XObjects reachable from a resource dictionary.

    Forms are visited depth first in dictionary order. The walk keeps its own
    stack, so arbitrarily deep chains of nested forms are fine.
    """
    # reversed, so the first form of each dictionary is popped first
    pending = _child_forms(resources, options.visited_streams)[::-1]
    while pending:
        name, xobj = pending.pop()
        logger.debug("Recursing into Form XObject: %s", name)
        if _redact_content_container(holder, xobj, pattern, options):
            return True
        children = _child_forms(xobj.get("/Resources"), options.visited_streams)
        pending.extend(reversed(children))

    return False


def _child_forms(
    resources: Any, visited: Set[Tuple[int, int]]
) -> List[Tuple[str, pikepdf.Stream]]:
    """The not yet visited Form XObjects of a resource dictionary."""
    if not isinstance(resources, pikepdf.Dictionary) or "/XObject" not in resources:
        return []

    xobjects = resources["/XObject"]
    if not isinstance(xobjects, pikepdf.Dictionary):
        return []

    forms = []
    for name, xobj_ref in xobjects.items():
        # Dedup; direct objects have no identity and cannot form cycles
        obj_id = getattr(xobj_ref, "objgen", (0, 0))
        if obj_id != (0, 0):
            if obj_id in visited:
                continue
            visited.add(obj_id)

        if not isinstance(xobj_ref, pikepdf.Stream):
            continue
        if xobj_ref.get("/Subtype") != "/Form":
            continue
        forms.append((name, xobj_ref))
    return forms


def _redact_content_container(
    holder: pikepdf.Page,
    container: Any,
    pattern: PatternLike,
    options: RedactionOptions,
) -> bool:
    """Core worker: redacts the content streams of a Page or Form XObject.

    Returns True when the container matched at :attr:`Scope.PAGE`.
    """
    kept: List[pikepdf.Stream] = []
    for stream in _get_content_streams(container):
        scope_filter = _filter_stream(holder, stream, pattern, options.scope)

        if options.scope >= Scope.STREAM:
            if scope_filter.redact:
                if options.scope is Scope.PAGE:
                    logger.debug("Content stream %s matched; dropping page", _describe(stream))
                    return True
                logger.debug("Omitting content stream %s", _describe(stream))
                continue
        elif scope_filter.modified:
            # untouched streams keep their original (possibly compressed) data
            stream.write(scope_filter.output_bytes)

        kept.append(stream)

    _set_content_streams(container, kept)
    return False


def _filter_stream(
    holder: pikepdf.Page, stream: pikepdf.Stream, pattern: PatternLike, scope: Scope
) -> ScopeFilter:
    """Run a fresh :class:`ScopeFilter` over the tokens of one stream."""
    scope_filter = ScopeFilter(pattern, scope)

    # the holder carries just this stream, keeping each stream's tokens separate
    holder.obj.Contents = stream
    holder.get_filtered_contents(ScopeTokenFilter(scope_filter))

    scope_filter.handle_eof()
    return scope_filter


def _get_content_streams(container: Any) -> List[pikepdf.Stream]:
    """
    Return the content streams of a Page (one or many) or a Form XObject (itself).
    """
    if not isinstance(container, pikepdf.Page):
        return [container]

    contents = container.obj.get("/Contents")
    if contents is None:
        return []
    if isinstance(contents, pikepdf.Stream):
        return [contents]
    if isinstance(contents, pikepdf.Array):
        streams = []
        for item in contents:
            if isinstance(item, pikepdf.Stream):
                streams.append(item)
            else:
                logger.warning("Skipping invalid content item (not a stream): %r", item)
        return streams

    logger.warning("Skipping invalid /Contents (not a stream): %r", contents)
    return []


def _set_content_streams(container: Any, streams: List[pikepdf.Stream]) -> None:
    """Store the surviving streams back into a Page or Form XObject."""
    if isinstance(container, pikepdf.Page):
        if len(streams) == 1:
            container.obj.Contents = streams[0]
        else:
            container.obj.Contents = pikepdf.Array(streams)
    elif not streams:
        # a form is its own single stream; dropping it leaves it empty
        container.write(b"")


def _get_resources(obj: pikepdf.Dictionary) -> Any:
    """Return the /Resources of a page, following inheritance through /Parent."""
    seen = set()
    while isinstance(obj, pikepdf.Dictionary):
        if "/Resources" in obj:
            return obj["/Resources"]
        if obj.objgen != (0, 0):
            if obj.objgen in seen:
                break
            seen.add(obj.objgen)
        obj = obj.get("/Parent")
    return None


def _describe(stream: pikepdf.Stream) -> str:
    num, gen = stream.objgen
    return f"{num} {gen} R"


def redact(
    pdf: pikepdf.Pdf,
    pattern: PatternLike,
    options: Optional[RedactionOptions] = None,
) -> List[int]:
    """High-level entry point to redact every page of a document.

    Pages that match at :attr:`Scope.PAGE` are removed. Resources left
    unused by the redaction (e.g. fonts of removed text) are then dropped.

    Args:
        pdf: The :class:`pikepdf.Pdf` object to process.
        pattern: Regular expression, as text or compiled.
        options: Configuration options.

    Returns:
        List[int]: The 0-based indexes, in the original document, of the
        removed pages.

    Raises:
        TypeError: If ``pdf`` is not a pikepdf object.
        re.error: If ``pattern`` is not a valid regular expression.
    """
    if not isinstance(pdf, pikepdf.Pdf):
        raise TypeError("The 'pdf' argument must be a pikepdf.Pdf object.")

    pattern = compile_pattern(pattern)
    if options is None:
        options = RedactionOptions()

    dropped = [
        index
        for index, page in enumerate(pdf.pages)
        if redact_page(pdf, page, pattern, options)
    ]

    for index in reversed(dropped):
        logger.info("Removing page %d", index + 1)
        del pdf.pages[index]

    pdf.remove_unreferenced_resources()
    return dropped


def redact_file(
    infile: PathLike,
    pattern: PatternLike,
    outfile: Optional[PathLike] = None,
    options: Optional[RedactionOptions] = None,
) -> List[int]:
    """Redact a PDF file.

    The result is written next to the destination first and renamed over it
    once complete, so a failed run never leaves a half-written file. Without
    ``outfile`` the input itself is replaced.

    Args:
        infile: Path of the document to redact.
        pattern: Regular expression, as text or compiled.
        outfile: Where to write the result. Defaults to ``infile``.
        options: Configuration options.

    Returns:
        List[int]: The indexes of the removed pages, as for :func:`redact`.

    Raises:
        re.error: If ``pattern`` is invalid; nothing is read or written.
        pikepdf.PdfError: If the input cannot be parsed or written.
        OSError: If a file cannot be read, written or renamed.
    """
    pattern = compile_pattern(pattern)
    destination = os.fspath(outfile if outfile is not None else infile)
    temporary = destination + "~"

    try:
        with pikepdf.open(infile) as pdf:
            dropped = redact(pdf, pattern, options)
            pdf.save(temporary)
        os.replace(temporary, destination)
    finally:
        if os.path.exists(temporary):
            os.remove(temporary)

    logger.info("Wrote %s", destination)
    return dropped
