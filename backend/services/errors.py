"""Exceptions raised by the splitter services."""


class SplitterError(Exception):
    """Base class for all domain errors."""
    pass


class ValidationError(SplitterError):
    """An entry was rejected before reaching the ledger (empty name, bad amount)."""
    pass


class PreprocessingUnsupported(SplitterError):
    """The receipt image could not be decoded or rasterized."""
    pass


class OcrFailed(SplitterError):
    """The OCR engine failed for any reason (missing binary, timeout, crash)."""

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__("OCR failed. Try a clearer photo or better lighting.")


class SyncFailed(SplitterError):
    """A remote ledger read or write failed. Local state is left as-is."""

    def __init__(self, op: str, room_id: str, detail: str = ""):
        self.op = op
        self.room_id = room_id
        self.detail = detail
        super().__init__(f"Sync {op} failed for room {room_id!r}: {detail}")
