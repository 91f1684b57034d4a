import logging
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
from psycopg.errors import UniqueViolation, ForeignKeyViolation, CheckViolation

log = logging.getLogger("fintech-api.errors")


class LedgerError(Exception):
    """Base for every domain failure surfaced to API callers."""
    kind = "ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class NotFound(LedgerError):
    kind = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

class InvalidInput(LedgerError):
    kind = "INVALID_INPUT"
    status_code = status.HTTP_400_BAD_REQUEST

class InvalidState(LedgerError):
    kind = "INVALID_STATE"
    status_code = status.HTTP_409_CONFLICT

class InsufficientFunds(LedgerError):
    kind = "INSUFFICIENT_FUNDS"
    status_code = 422

class Conflict(LedgerError):
    kind = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT


def _sqlite_reason(orig) -> str:
    # sqlite3.IntegrityError only carries a message
    return str(orig or "").lower()


def handle_integrity_error(e: IntegrityError):
    orig = getattr(e, "orig", None)
    if isinstance(orig, UniqueViolation):
        # e.g., duplicate reference, account number or a second default account
        raise Conflict("conflict: unique constraint violated") from e
    if isinstance(orig, ForeignKeyViolation):
        raise InvalidInput("bad reference: foreign key violated") from e
    if isinstance(orig, CheckViolation):
        raise InvalidInput("check constraint violated") from e
    reason = _sqlite_reason(orig)
    if "unique" in reason:
        raise Conflict("conflict: unique constraint violated") from e
    if "foreign key" in reason:
        raise InvalidInput("bad reference: foreign key violated") from e
    if "check" in reason:
        raise InvalidInput("check constraint violated") from e
    # Fallback
    raise InvalidInput("integrity error") from e


async def ledger_error_handler(request: Request, exc: LedgerError):
    log.warning(f"{request.method} {request.url.path} -> {exc.kind}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = first.get("msg", "invalid input")
    message = f"{loc}: {msg}" if loc else msg
    return JSONResponse(
        status_code=422,
        content={"error": {"kind": InvalidInput.kind, "message": message}},
    )
