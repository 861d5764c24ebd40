"""Exceptions raised while converting a book."""


class Epub2MarkupError(Exception):
    """Base class for fatal conversion errors."""


class ExtractionError(Epub2MarkupError):
    """The book archive could not be unpacked."""


class MalformedPackage(Epub2MarkupError):
    """The container descriptor or package document is missing or unreadable."""


class NoChaptersFound(Epub2MarkupError):
    """Reading order could not be turned into any chapter."""


class EmptySpine(NoChaptersFound):
    """The package document declares no spine entries."""


class NoHtmlContent(NoChaptersFound):
    """The spine references no HTML-family content."""
