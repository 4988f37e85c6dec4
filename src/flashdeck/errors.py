"""Exception types."""


class FlashdeckError(Exception):
    """Base class for errors raised by flashdeck."""


class DeckLoadError(FlashdeckError):
    """The deck could not be fetched. Fatal for the study session."""


class DeckImportError(FlashdeckError):
    """A deck file could not be parsed or holds no cards."""


class ProgressStoreError(FlashdeckError):
    """Reading or writing saved progress failed."""
