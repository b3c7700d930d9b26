"""Map service exceptions onto HTTP errors."""
from contextlib import contextmanager

from fastapi import HTTPException

from corpsec.services.errors import ConflictError


@contextmanager
def service_errors():
    """Translate ConflictError/LookupError/PermissionError/ValueError raised by services."""
    try:
        yield
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e).strip("'\""))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
